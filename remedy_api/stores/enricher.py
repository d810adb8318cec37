from __future__ import annotations

import logging
import math
from typing import Any

import httpx

from ..recommendations.models import Coordinates, StoreCandidate
from .config import DEFAULT_PLACES_CONFIG, PlacesConfig
from .distance import haversine_km
from .places_client import ProviderDegraded, place_details

logger = logging.getLogger(__name__)

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query={lat},{lng}"


def _place_coordinates(place: dict[str, Any]) -> Coordinates | None:
    try:
        loc = place["geometry"]["location"]
        lat, lng = float(loc["lat"]), float(loc["lng"])
    except (KeyError, TypeError, ValueError):
        return None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None
    return Coordinates(lat=lat, lng=lng)


def _rating(place: dict[str, Any]) -> float | None:
    rating = place.get("rating")
    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        return None
    if not 0.0 <= rating <= 5.0:
        return None
    return float(rating)


def _open_now(place: dict[str, Any]) -> bool | None:
    hours = place.get("opening_hours")
    if isinstance(hours, dict) and isinstance(hours.get("open_now"), bool):
        return hours["open_now"]
    return None


def _optional_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


async def enrich_place(
    client: httpx.AsyncClient,
    place: dict[str, Any],
    user_coords: tuple[float, float] | None,
    config: PlacesConfig = DEFAULT_PLACES_CONFIG,
) -> StoreCandidate | None:
    """
    Turn one raw text-search hit into a ``StoreCandidate``.

    Issues a single details request for phone and website. A failed
    lookup leaves both absent and is only logged. Returns ``None`` for a
    hit without a usable name, without contacting the provider.
    """
    name = _optional_text(place.get("name"))
    if name is None:
        logger.warning("Skipping search hit without a name: %r", place.get("place_id"))
        return None

    phone_number = None
    website = None

    place_id = _optional_text(place.get("place_id"))
    if place_id:
        try:
            details = await place_details(client, place_id, config)
        except ProviderDegraded as exc:
            logger.warning("No details for place %s: %s", place_id, exc)
        else:
            phone_number = _optional_text(details.get("formatted_phone_number"))
            website = _optional_text(details.get("website"))

    coordinates = _place_coordinates(place)

    distance_km = None
    if user_coords is not None and coordinates is not None:
        distance_km = round(haversine_km(user_coords[0], user_coords[1], coordinates.lat, coordinates.lng), 1)

    maps_url = None
    if coordinates is not None:
        maps_url = MAPS_SEARCH_URL.format(lat=coordinates.lat, lng=coordinates.lng)

    return StoreCandidate(
        name=name,
        address=_optional_text(place.get("formatted_address")) or _optional_text(place.get("vicinity")) or "",
        rating=_rating(place),
        open_now=_open_now(place),
        phone_number=phone_number,
        website=website,
        distance_km=distance_km,
        coordinates=coordinates,
        maps_url=maps_url,
    )
