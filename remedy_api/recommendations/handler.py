from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..stores.config import DEFAULT_PLACES_CONFIG, PlacesConfig
from ..stores.locator import locate_stores
from .engine import recommend_remedies
from .errors import InvalidInput
from .models import RecommendationResponse, StoreCandidate, SymptomQuery

logger = logging.getLogger(__name__)


def parse_query(payload: Any) -> SymptomQuery:
    """Validate a decoded JSON body into a ``SymptomQuery`` or raise ``InvalidInput``."""
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be a JSON object")

    symptoms = payload.get("symptoms")
    if not isinstance(symptoms, str) or not symptoms.strip():
        raise InvalidInput("Symptoms are required")

    try:
        return SymptomQuery.model_validate(payload)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise InvalidInput(f"Invalid request fields: {fields}") from exc


async def _stores_or_empty(location: str, config: PlacesConfig) -> list[StoreCandidate]:
    try:
        return await locate_stores(location, config=config)
    except Exception:
        logger.warning("Store lookup failed, returning recommendations only", exc_info=True)
        return []


async def handle_request(
    payload: Any,
    llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
    places_config: PlacesConfig = DEFAULT_PLACES_CONFIG,
) -> RecommendationResponse:
    """
    Produce remedy recommendations and, when a location is given, nearby stores.

    The remedy call and the store lookup run as concurrent tasks. A remedy
    failure cancels the store lookup and propagates; a store failure only
    drops ``local_stores``.
    """
    query = parse_query(payload)

    tasks: list[asyncio.Task] = [asyncio.create_task(recommend_remedies(query, config=llm_config))]
    if query.wants_stores:
        tasks.append(asyncio.create_task(_stores_or_empty(query.location, places_config)))

    try:
        results = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise

    recommendations = results[0]
    stores = results[1] if len(results) > 1 else []

    return RecommendationResponse(
        recommendations=recommendations,
        local_stores=stores or None,
    )
