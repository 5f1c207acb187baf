"""
Distance Estimation

Route distance and driving time between two addresses via the Google Maps
Geocoding and Distance Matrix APIs.

Without an API key, or when any step fails, a simulated estimate is returned
with a note explaining why. Distance lookups never raise.
"""

import os
from typing import Any

import requests
from pydantic import BaseModel, Field

from fruitflow.kernel.logging import get_logger
from fruitflow.kernel.retry import retry_on_transient_error

logger = get_logger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"
API_KEY_ENV = "GOOGLE_MAPS_API_KEY"
REQUEST_TIMEOUT_SECONDS = 10


class DistanceEstimate(BaseModel):
    """Distance lookup result"""

    distance_text: str = Field(..., description="e.g. '512 km'")
    duration_text: str = Field(..., description="e.g. '5 hours 40 mins'")
    distance_km: float | None = Field(default=None, description="Metres / 1000 when known")
    simulated: bool = Field(default=False)
    note: str | None = Field(default=None)


@retry_on_transient_error(
    exceptions=(requests.ConnectionError, requests.Timeout),
)
def _http_get(url: str, params: dict[str, Any]) -> requests.Response:
    return requests.get(url, params=params, timeout=REQUEST_TIMEOUT_SECONDS)


def _simulated(distance_text: str, duration_text: str, note: str) -> DistanceEstimate:
    return DistanceEstimate(
        distance_text=distance_text,
        duration_text=duration_text,
        simulated=True,
        note=note,
    )


def geocode_address(address: str, api_key: str) -> dict[str, float] | None:
    """
    Resolve an address to {"lat": ..., "lng": ...}

    Returns None on HTTP errors, network errors or no match.
    """
    try:
        response = _http_get(GEOCODE_URL, {"address": address, "key": api_key})
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Geocoding request failed", address=address, error=str(e))
        return None

    if not response.ok:
        logger.warning(
            "Geocoding API error",
            address=address,
            status_code=response.status_code,
            error_message=data.get("error_message"),
        )
        return None

    results = data.get("results") or []
    if data.get("status") == "OK" and results:
        return results[0]["geometry"]["location"]

    logger.warning(
        "Geocoding returned no match",
        address=address,
        status=data.get("status"),
    )
    return None


def calculate_distance(
    origin_address: str,
    destination_address: str,
    api_key: str | None = None,
) -> DistanceEstimate:
    """
    Estimate road distance and driving time between two addresses

    Args:
        origin_address: Start address or place name
        destination_address: Destination address or place name
        api_key: Google Maps key; falls back to $GOOGLE_MAPS_API_KEY

    Returns:
        DistanceEstimate, ``simulated=True`` whenever the real lookup was not
        possible
    """
    key = api_key if api_key is not None else os.getenv(API_KEY_ENV)

    if not key:
        logger.info("Maps API key not configured, returning simulated distance")
        return _simulated(
            "Approx. 300-700 km (Simulated)",
            "Approx. 3-7 hours (Simulated)",
            f"Real distance calculation requires {API_KEY_ENV} to be set. "
            "This is simulated data.",
        )

    origin = geocode_address(origin_address, key)
    if origin is None:
        return _simulated(
            "N/A (Simulated)",
            "N/A (Simulated)",
            f'Could not geocode origin address: "{origin_address}". Using simulated data.',
        )

    destination = geocode_address(destination_address, key)
    if destination is None:
        return _simulated(
            "N/A (Simulated)",
            "N/A (Simulated)",
            f'Could not geocode destination address: "{destination_address}". '
            "Using simulated data.",
        )

    params = {
        "origins": f"{origin['lat']},{origin['lng']}",
        "destinations": f"{destination['lat']},{destination['lng']}",
        "key": key,
    }
    try:
        response = _http_get(DISTANCE_MATRIX_URL, params)
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Distance Matrix request failed", error=str(e))
        return _simulated(
            "Network Error (Simulated)",
            "Network Error (Simulated)",
            "A network error occurred while calculating the distance. Using simulated data.",
        )

    if not response.ok:
        logger.warning(
            "Distance Matrix API error",
            status_code=response.status_code,
            error_message=data.get("error_message"),
        )
        return _simulated(
            "Error (Simulated)",
            "Error (Simulated)",
            f"Distance Matrix API request failed with status {response.status_code}. "
            "Using simulated data.",
        )

    rows = data.get("rows") or []
    elements = rows[0].get("elements") if rows else None
    if data.get("status") != "OK" or not elements:
        logger.warning(
            "Distance Matrix returned unexpected data",
            status=data.get("status"),
            error_message=data.get("error_message"),
        )
        return _simulated(
            "API Error (Simulated)",
            "API Error (Simulated)",
            f"Distance Matrix API call failed: {data.get('status')}. Using simulated data.",
        )

    element = elements[0]
    if element.get("status") != "OK":
        return _simulated(
            "N/A (Simulated)",
            "N/A (Simulated)",
            f"No route found between the addresses (status {element.get('status')}). "
            "Using simulated data.",
        )

    metres = element.get("distance", {}).get("value")
    origins = data.get("origin_addresses") or [origin_address]
    destinations = data.get("destination_addresses") or [destination_address]
    return DistanceEstimate(
        distance_text=element["distance"]["text"],
        duration_text=element["duration"]["text"],
        distance_km=metres / 1000.0 if isinstance(metres, (int, float)) else None,
        simulated=False,
        note=(
            "Distance calculated using Google Maps API. "
            f"Origin: {origins[0]}. Destination: {destinations[0]}."
        ),
    )
