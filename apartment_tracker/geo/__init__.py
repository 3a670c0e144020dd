"""Geocoding and routing provider."""

from apartment_tracker.geo.openroute import GeocodeResult, OpenRouteServiceClient

__all__ = ["GeocodeResult", "OpenRouteServiceClient"]
