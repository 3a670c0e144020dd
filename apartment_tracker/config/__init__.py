"""Application configuration."""

from apartment_tracker.config.settings import RoutingConfig, ScraperConfig, Settings

__all__ = ["RoutingConfig", "ScraperConfig", "Settings"]
