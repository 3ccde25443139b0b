"""Airport-to-city enrichment."""
from .airport_lookup import AirportCityLookup, AirportReferenceError, get_city_for_airport

__all__ = ["AirportCityLookup", "AirportReferenceError", "get_city_for_airport"]
