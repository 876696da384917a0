# driver_dashboard/services/geocoding.py
import logging
from typing import Optional

import requests

from driver_dashboard.config import settings
from driver_dashboard.models import Coordinates

logger = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"


def geocode_address(address: str) -> Optional[Coordinates]:
    """
    Returns coordinates for an address using the Google Geocoding API,
    or None when the key is missing or the lookup fails.
    """
    if not settings.GOOGLE_MAPS_API_KEY:
        logger.debug("Google Maps API key not configured. Skipping geocoding.")
        return None
    if not address:
        return None

    try:
        response = requests.get(
            GEOCODE_URL,
            params={"address": address, "key": settings.GOOGLE_MAPS_API_KEY},
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        logger.error(f"Geocoding request failed for '{address}': {e}")
        return None
    except ValueError as e:
        logger.error(f"Geocoding response for '{address}' was not JSON: {e}")
        return None

    if data.get("status") != "OK" or not data.get("results"):
        logger.warning(f"Could not geocode '{address}': status {data.get('status')}, {data.get('error_message', 'no results')}")
        return None

    try:
        location = data["results"][0]["geometry"]["location"]
        return Coordinates(lat=location["lat"], lng=location["lng"])
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Unexpected geocoding response shape for '{address}': {e}")
        return None
