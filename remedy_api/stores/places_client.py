from __future__ import annotations

from typing import Any

import httpx

from .config import DEFAULT_PLACES_CONFIG, PlacesConfig

DETAIL_FIELDS = "formatted_phone_number,website"


class ProviderDegraded(Exception):
    """A geocode, search or details call produced nothing usable."""


async def _get_json(
    client: httpx.AsyncClient,
    url: str,
    params: dict[str, Any],
    config: PlacesConfig,
) -> dict[str, Any]:
    try:
        resp = await client.get(url, params={**params, "key": config.api_key}, timeout=config.timeout)
    except httpx.HTTPError as exc:
        raise ProviderDegraded(f"request to {url} failed: {exc!r}") from exc

    if resp.status_code != 200:
        raise ProviderDegraded(f"HTTP {resp.status_code} from {url}")

    try:
        data = resp.json()
    except ValueError as exc:
        raise ProviderDegraded(f"malformed body from {url}") from exc

    if not isinstance(data, dict):
        raise ProviderDegraded(f"unexpected body from {url}")
    return data


def _status_message(data: dict[str, Any]) -> str:
    # Google sometimes provides an "error_message" explaining the issue
    return data.get("error_message") or str(data.get("status"))


async def geocode(
    client: httpx.AsyncClient,
    address: str,
    config: PlacesConfig = DEFAULT_PLACES_CONFIG,
) -> tuple[float, float]:
    """Resolve free text to ``(lat, lng)`` using the first geocoding result."""
    data = await _get_json(client, config.geocode_url, {"address": address}, config)

    if data.get("status") != "OK" or not data.get("results"):
        raise ProviderDegraded(f"Geocoding failed: {_status_message(data)}")

    try:
        loc = data["results"][0]["geometry"]["location"]
        return float(loc["lat"]), float(loc["lng"])
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise ProviderDegraded("Geocoding result has no usable location") from exc


async def text_search(
    client: httpx.AsyncClient,
    location: str,
    config: PlacesConfig = DEFAULT_PLACES_CONFIG,
) -> list[dict[str, Any]]:
    """
    Text-search stores near ``location``.

    Returns the raw result records in provider relevance order. Zero
    results is an empty list, any other non-OK status is a failure.
    """
    query = f"{config.search_query} in {location}"
    data = await _get_json(client, config.text_search_url, {"query": query}, config)

    status = data.get("status")
    if status == "ZERO_RESULTS":
        return []
    if status != "OK":
        raise ProviderDegraded(f"Text search failed: {_status_message(data)}")

    results = data.get("results", [])
    if not isinstance(results, list):
        raise ProviderDegraded("Text search results are not a list")
    return [r for r in results if isinstance(r, dict)]


async def place_details(
    client: httpx.AsyncClient,
    place_id: str,
    config: PlacesConfig = DEFAULT_PLACES_CONFIG,
) -> dict[str, Any]:
    data = await _get_json(
        client,
        config.details_url,
        {"place_id": place_id, "fields": DETAIL_FIELDS},
        config,
    )

    if data.get("status") != "OK":
        raise ProviderDegraded(f"Place details failed: {_status_message(data)}")

    result = data.get("result")
    if not isinstance(result, dict):
        raise ProviderDegraded("Place details body has no result")
    return result
