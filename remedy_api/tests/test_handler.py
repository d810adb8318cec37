from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from remedy_api.recommendations.engine import purchase_url
from remedy_api.recommendations.errors import InvalidInput, PaymentRequired, UpstreamModelError
from remedy_api.recommendations.handler import handle_request, parse_query
from remedy_api.recommendations.models import RemedyRecommendation, Severity, StoreCandidate


def _recommendations(count: int = 3) -> list[RemedyRecommendation]:
    names = ["Belladonna", "Aconitum Napellus", "Ferrum Phosphoricum", "Gelsemium", "Arnica Montana"]
    return [
        RemedyRecommendation(
            medicine_name=name,
            potency="30C",
            dosage="3 pellets, 3 times daily",
            description="Matches the symptom picture.",
            benefits=["Eases symptoms"],
            considerations=["Seek care if symptoms worsen"],
            purchase_url=purchase_url(name),
        )
        for name in names[:count]
    ]


STORES = [
    StoreCandidate(name="Near Remedies", address="1 A St", distance_km=0.6),
    StoreCandidate(name="Far Remedies", address="9 Z St", distance_km=11.8),
]


# ── Input parsing ────────────────────────────────────────────────────────


class TestParseQuery:
    def test_minimal_query(self):
        query = parse_query({"symptoms": "fever, sore throat", "severity": "Moderate"})
        assert query.symptoms == "fever, sore throat"
        assert query.severity is Severity.moderate
        assert query.age == "Not specified"
        assert query.gender == "Not specified"
        assert query.location is None

    def test_camel_case_fields(self):
        query = parse_query({
            "symptoms": "cough",
            "existingConditions": "asthma",
            "additionalInfo": "worse at night",
            "location": " Calgary, AB ",
            "age": 42,
        })
        assert query.existing_conditions == "asthma"
        assert query.additional_info == "worse at night"
        assert query.location == "Calgary, AB"
        assert query.age == "42"

    @pytest.mark.parametrize("payload", [{}, {"symptoms": ""}, {"symptoms": "   "}, {"symptoms": 7}, [], "fever", None])
    def test_rejects_missing_symptoms(self, payload):
        with pytest.raises(InvalidInput):
            parse_query(payload)

    def test_rejects_unknown_severity(self):
        with pytest.raises(InvalidInput, match="severity"):
            parse_query({"symptoms": "cough", "severity": "catastrophic"})

    def test_blank_severity_is_absent(self):
        assert parse_query({"symptoms": "cough", "severity": ""}).severity is None


# ── Orchestration ────────────────────────────────────────────────────────


@patch("remedy_api.recommendations.handler.locate_stores", new_callable=AsyncMock)
@patch("remedy_api.recommendations.handler.recommend_remedies", new_callable=AsyncMock)
def test_no_location_skips_store_lookup(mock_recommend, mock_locate):
    mock_recommend.return_value = _recommendations(3)

    response = asyncio.run(handle_request({"symptoms": "fever, sore throat", "severity": "moderate"}))

    assert len(response.recommendations) == 3
    assert response.local_stores is None
    mock_locate.assert_not_called()


@patch("remedy_api.recommendations.handler.locate_stores", new_callable=AsyncMock)
@patch("remedy_api.recommendations.handler.recommend_remedies", new_callable=AsyncMock)
def test_whitespace_location_skips_store_lookup(mock_recommend, mock_locate):
    mock_recommend.return_value = _recommendations(3)

    response = asyncio.run(handle_request({"symptoms": "fever", "location": "   "}))

    assert response.local_stores is None
    mock_locate.assert_not_called()


@patch("remedy_api.recommendations.handler.locate_stores", new_callable=AsyncMock)
@patch("remedy_api.recommendations.handler.recommend_remedies", new_callable=AsyncMock)
def test_location_merges_stores(mock_recommend, mock_locate):
    mock_recommend.return_value = _recommendations(4)
    mock_locate.return_value = STORES

    response = asyncio.run(handle_request({"symptoms": "fever", "location": "Calgary, AB"}))

    assert len(response.recommendations) == 4
    assert response.local_stores == STORES
    assert mock_locate.await_args.args[0] == "Calgary, AB"


@patch("remedy_api.recommendations.handler.locate_stores", new_callable=AsyncMock)
@patch("remedy_api.recommendations.handler.recommend_remedies", new_callable=AsyncMock)
def test_empty_store_result_is_absent_not_empty(mock_recommend, mock_locate):
    mock_recommend.return_value = _recommendations(3)
    mock_locate.return_value = []

    response = asyncio.run(handle_request({"symptoms": "fever", "location": "Nowhere"}))

    assert response.local_stores is None
    assert "localStores" not in response.model_dump(by_alias=True, exclude_none=True)


@patch("remedy_api.recommendations.handler.locate_stores", new_callable=AsyncMock)
@patch("remedy_api.recommendations.handler.recommend_remedies", new_callable=AsyncMock)
def test_store_failure_still_returns_recommendations(mock_recommend, mock_locate):
    mock_recommend.return_value = _recommendations(3)
    mock_locate.side_effect = RuntimeError("places exploded")

    response = asyncio.run(handle_request({"symptoms": "fever", "location": "Calgary, AB"}))

    assert len(response.recommendations) == 3
    assert response.local_stores is None


@patch("remedy_api.recommendations.handler.locate_stores", new_callable=AsyncMock)
@patch("remedy_api.recommendations.handler.recommend_remedies", new_callable=AsyncMock)
def test_engine_failure_fails_request(mock_recommend, mock_locate):
    mock_recommend.side_effect = PaymentRequired()
    mock_locate.return_value = STORES

    with pytest.raises(PaymentRequired):
        asyncio.run(handle_request({"symptoms": "fever", "location": "Calgary, AB"}))


@patch("remedy_api.recommendations.handler.locate_stores", new_callable=AsyncMock)
@patch("remedy_api.recommendations.handler.recommend_remedies", new_callable=AsyncMock)
def test_invalid_input_makes_no_outbound_calls(mock_recommend, mock_locate):
    with pytest.raises(InvalidInput):
        asyncio.run(handle_request({"location": "Calgary, AB"}))

    mock_recommend.assert_not_called()
    mock_locate.assert_not_called()


def test_engine_and_locator_run_concurrently():
    started: list[str] = []

    async def scenario():
        gate = asyncio.Event()

        async def fake_recommend(query, config):
            started.append("engine")
            if len(started) == 2:
                gate.set()
            await asyncio.wait_for(gate.wait(), timeout=1)
            return _recommendations(3)

        async def fake_locate(location, config):
            started.append("locator")
            if len(started) == 2:
                gate.set()
            await asyncio.wait_for(gate.wait(), timeout=1)
            return STORES

        with patch("remedy_api.recommendations.handler.recommend_remedies", fake_recommend), \
                patch("remedy_api.recommendations.handler.locate_stores", fake_locate):
            return await handle_request({"symptoms": "fever", "location": "Calgary, AB"})

    response = asyncio.run(scenario())

    assert sorted(started) == ["engine", "locator"]
    assert response.local_stores == STORES


def test_engine_failure_cancels_store_lookup():
    cancelled: list[bool] = []

    async def scenario():
        async def fake_recommend(query, config):
            await asyncio.sleep(0)
            raise UpstreamModelError()

        async def slow_locate(location, config):
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise
            return STORES

        with patch("remedy_api.recommendations.handler.recommend_remedies", fake_recommend), \
                patch("remedy_api.recommendations.handler.locate_stores", slow_locate):
            with pytest.raises(UpstreamModelError):
                await handle_request({"symptoms": "fever", "location": "Calgary, AB"})
            await asyncio.sleep(0)

    asyncio.run(scenario())

    assert cancelled == [True]
