from __future__ import annotations

import asyncio
import logging

import httpx

from ..recommendations.models import StoreCandidate
from .config import DEFAULT_PLACES_CONFIG, PlacesConfig
from .enricher import enrich_place
from .places_client import ProviderDegraded, geocode, text_search

logger = logging.getLogger(__name__)


def sort_by_distance(stores: list[StoreCandidate]) -> list[StoreCandidate]:
    """Closest first, stores without a distance last; provider order if none has one."""
    if not any(s.distance_km is not None for s in stores):
        return list(stores)
    return sorted(stores, key=lambda s: (s.distance_km is None, s.distance_km or 0.0))


async def _locate(
    client: httpx.AsyncClient,
    location: str,
    config: PlacesConfig,
) -> list[StoreCandidate]:
    geocoded, searched = await asyncio.gather(
        geocode(client, location, config),
        text_search(client, location, config),
        return_exceptions=True,
    )

    user_coords: tuple[float, float] | None = None
    if isinstance(geocoded, ProviderDegraded):
        logger.warning("Geocoding %r failed, distances unavailable: %s", location, geocoded)
    elif isinstance(geocoded, BaseException):
        raise geocoded
    else:
        user_coords = geocoded

    if isinstance(searched, ProviderDegraded):
        logger.warning("Store search near %r failed: %s", location, searched)
        return []
    if isinstance(searched, BaseException):
        raise searched

    # Capped in provider relevance order; distance is unknown before enrichment.
    hits = searched[: config.max_results]
    if not hits:
        return []

    stores = await asyncio.gather(
        *(enrich_place(client, place, user_coords, config) for place in hits)
    )
    return sort_by_distance([s for s in stores if s is not None])


async def locate_stores(
    location: str,
    config: PlacesConfig = DEFAULT_PLACES_CONFIG,
    client: httpx.AsyncClient | None = None,
) -> list[StoreCandidate]:
    """
    Find homeopathic stores near a free-text location.

    Returns an empty list when the location is blank or the places API
    key is not configured, without contacting the provider. Provider
    failures shrink the result instead of raising.
    """
    if not isinstance(location, str):
        raise TypeError(f"location must be a string, got {type(location).__name__}")
    location = location.strip()
    if not location or not config.enabled:
        return []

    if client is not None:
        return await _locate(client, location, config)

    async with httpx.AsyncClient(timeout=httpx.Timeout(config.timeout)) as own_client:
        return await _locate(own_client, location, config)
