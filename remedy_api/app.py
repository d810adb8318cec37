from __future__ import annotations

import json
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from .recommendations.errors import InvalidInput, RemedyServiceError
from .recommendations.handler import handle_request
from .recommendations.models import ErrorResponse, RecommendationResponse

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
}

app = FastAPI(title="Homeopathic Remedy Recommendation API", version="1.0.0")


@app.exception_handler(RemedyServiceError)
async def remedy_error_handler(request: Request, exc: RemedyServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump(),
        headers=CORS_HEADERS,
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Error in recommend-medicine handler")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error=RemedyServiceError.default_message).model_dump(),
        headers=CORS_HEADERS,
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.options("/recommend-medicine")
def recommend_medicine_options() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


@app.post(
    "/recommend-medicine",
    response_model=RecommendationResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse},
        402: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def recommend_medicine(request: Request, response: Response) -> RecommendationResponse:
    response.headers.update(CORS_HEADERS)
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidInput("Request body must be valid JSON") from exc

    return await handle_request(payload)
