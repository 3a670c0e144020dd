"""Typed request contracts for the HTTP endpoints."""
