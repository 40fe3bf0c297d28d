"""Clients for external API interactions."""
from places_enricher.clients.http_client import HttpClient
from places_enricher.clients.places_client import PlacesClient

__all__ = ["HttpClient", "PlacesClient"]
