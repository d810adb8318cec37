from __future__ import annotations

import logging
import re
from typing import Annotated
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError
from pydantic.alias_generators import to_camel

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import request_recommendations
from .errors import UpstreamModelError
from .models import RemedyRecommendation, SymptomQuery

logger = logging.getLogger(__name__)

PURCHASE_SEARCH_URL = "https://www.amazon.com/s?k="
PURCHASE_QUALIFIER = "+homeopathic"

# Characters encodeURIComponent leaves untouched besides alphanumerics and "-_."
_URI_COMPONENT_SAFE = "!~*'()"

_WHITESPACE = re.compile(r"\s+")

NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]


class _RemedyDraft(BaseModel):
    """One recommendation exactly as the tool schema allows the model to send it."""

    model_config = ConfigDict(
        alias_generator=to_camel, extra="forbid", str_strip_whitespace=True,
    )

    medicine_name: NonEmptyStr
    potency: NonEmptyStr
    dosage: NonEmptyStr
    description: NonEmptyStr
    benefits: list[str] = Field(..., min_length=1)
    considerations: list[str] = Field(..., min_length=1)


class _ToolPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    recommendations: list[_RemedyDraft] = Field(..., min_length=3, max_length=5)


def purchase_url(medicine_name: str) -> str:
    """Marketplace search link for a remedy, e.g. ``...?k=Arnica%2BMontana+homeopathic``."""
    search_query = quote(_WHITESPACE.sub("+", medicine_name), safe=_URI_COMPONENT_SAFE)
    return f"{PURCHASE_SEARCH_URL}{search_query}{PURCHASE_QUALIFIER}"


def _clean_items(items: list[str]) -> list[str]:
    return [item.strip() for item in items if item and item.strip()]


def parse_recommendations(arguments: dict) -> list[RemedyRecommendation]:
    """Validate decoded tool arguments and attach purchase links."""
    try:
        payload = _ToolPayload.model_validate(arguments)
    except ValidationError as exc:
        logger.error("Model reply failed the recommendation contract: %s", exc)
        raise UpstreamModelError() from exc

    results: list[RemedyRecommendation] = []
    for draft in payload.recommendations:
        benefits = _clean_items(draft.benefits)
        considerations = _clean_items(draft.considerations)
        if not benefits or not considerations:
            logger.error("Model returned %r without benefits or considerations", draft.medicine_name)
            raise UpstreamModelError()
        results.append(
            RemedyRecommendation(
                medicine_name=draft.medicine_name,
                potency=draft.potency,
                dosage=draft.dosage,
                description=draft.description,
                benefits=benefits,
                considerations=considerations,
                purchase_url=purchase_url(draft.medicine_name),
            )
        )
    return results


async def recommend_remedies(
    query: SymptomQuery,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> list[RemedyRecommendation]:
    arguments = await request_recommendations(query, config=config)
    return parse_recommendations(arguments)
