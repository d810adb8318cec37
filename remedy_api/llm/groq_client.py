from __future__ import annotations

import json
import logging
from typing import Any

from groq import APIConnectionError, APIStatusError, AsyncGroq, RateLimitError

from ..recommendations.errors import PaymentRequired, RateLimited, UpstreamModelError
from ..recommendations.models import SymptomQuery
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

TOOL_NAME = "recommend_homeopathic_medicines"

SYSTEM_PROMPT = """\
You are an expert homeopathic consultant with deep knowledge of homeopathic \
remedies, materia medica, and constitutional prescribing. Your role is to \
analyze patient symptoms and recommend multiple appropriate homeopathic medicines.

Important guidelines:
- Provide 3-5 different homeopathic remedy options
- Consider the totality of symptoms, not just isolated complaints
- Match symptom patterns to remedy pictures
- Consider constitutional factors (age, gender, temperament)
- Recommend classical single remedies
- Provide appropriate potencies (typically 6C, 30C, or 200C)
- Include clear dosage instructions
- Emphasize safety and when to seek professional care
- Order recommendations by best match to symptoms

Always structure each recommendation with:
- Remedy name (Latin name + common name if applicable)
- Potency recommendation
- Detailed dosage instructions
- Clear description of why this remedy matches
- Expected benefits
- Important considerations and safety notes"""

_RECOMMENDATION_ITEM_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "medicineName": {
            "type": "string",
            "description": "The full name of the recommended homeopathic medicine (Latin name + potency)",
        },
        "potency": {
            "type": "string",
            "description": "The recommended potency (e.g., 6C, 30C, 200C)",
        },
        "dosage": {
            "type": "string",
            "description": "Detailed dosage instructions including frequency and duration",
        },
        "description": {
            "type": "string",
            "description": "Comprehensive description of the remedy and why it matches the symptoms",
        },
        "benefits": {
            "type": "array",
            "items": {"type": "string"},
            "description": "List of expected benefits (3-5 items)",
        },
        "considerations": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Important safety considerations and guidance (3-5 items)",
        },
    },
    "required": ["medicineName", "potency", "dosage", "description", "benefits", "considerations"],
    "additionalProperties": False,
}

RECOMMEND_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": TOOL_NAME,
        "description": "Recommend multiple homeopathic medicines based on symptom analysis",
        "parameters": {
            "type": "object",
            "properties": {
                "recommendations": {
                    "type": "array",
                    "description": "List of 3-5 homeopathic medicine recommendations, ordered by best match",
                    "items": _RECOMMENDATION_ITEM_SCHEMA,
                    "minItems": 3,
                    "maxItems": 5,
                },
            },
            "required": ["recommendations"],
            "additionalProperties": False,
        },
    },
}


def _build_user_message(query: SymptomQuery) -> str:
    lines = ["Please analyze these symptoms and recommend 3-5 appropriate homeopathic medicines:", ""]
    lines.append(f"Symptoms: {query.symptoms}")
    if query.severity:
        lines.append(f"Severity: {query.severity.value}")
    if query.existing_conditions:
        lines.append(f"Existing conditions: {query.existing_conditions}")
    if query.additional_info:
        lines.append(f"Additional information: {query.additional_info}")
    lines.append(f"Age: {query.age}")
    lines.append(f"Gender: {query.gender}")
    lines.append("")
    lines.append("Provide 3-5 homeopathic medicine recommendations, ordered by best match.")
    return "\n".join(lines)


def _decode_tool_call(response: Any) -> dict[str, Any]:
    """Return the arguments of the expected tool call, or raise ``UpstreamModelError``."""
    try:
        tool_calls = response.choices[0].message.tool_calls
    except (AttributeError, IndexError, TypeError) as exc:
        raise UpstreamModelError() from exc

    if not tool_calls:
        raise UpstreamModelError()

    call = tool_calls[0]
    if call.function.name != TOOL_NAME:
        logger.error("Model called unexpected tool %r", call.function.name)
        raise UpstreamModelError()

    try:
        arguments = json.loads(call.function.arguments or "")
    except (json.JSONDecodeError, TypeError) as exc:
        raise UpstreamModelError() from exc

    if not isinstance(arguments, dict):
        raise UpstreamModelError()
    return arguments


async def request_recommendations(
    query: SymptomQuery,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> dict[str, Any]:
    """
    Ask the model for remedies through the forced tool call.

    Makes exactly one attempt. Returns the decoded tool arguments; the
    caller validates them against the recommendation contract.
    """
    if not config.api_key:
        raise UpstreamModelError("GROQ_API_KEY not configured")

    client = AsyncGroq(
        api_key=config.api_key,
        base_url=config.base_url,
        timeout=config.timeout,
        max_retries=0,
    )
    try:
        response = await client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": _build_user_message(query)},
            ],
            tools=[RECOMMEND_TOOL],
            tool_choice={"type": "function", "function": {"name": TOOL_NAME}},
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )
    except RateLimitError as exc:
        logger.error("AI gateway error: 429 %s", exc.message)
        raise RateLimited() from exc
    except APIStatusError as exc:
        logger.error("AI gateway error: %s %s", exc.status_code, exc.message)
        if exc.status_code == 402:
            raise PaymentRequired() from exc
        raise UpstreamModelError(f"AI Gateway error: {exc.status_code}") from exc
    except APIConnectionError as exc:
        logger.error("AI gateway unreachable: %s", exc)
        raise UpstreamModelError("AI Gateway unreachable") from exc
    finally:
        await client.close()

    logger.debug("AI response: %s", response)
    return _decode_tool_call(response)
