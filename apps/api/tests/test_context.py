"""Tests for metadata decoding, context formatting and the widget page."""
from __future__ import annotations

import pytest

from chatkit_api.schemas.property import PropertyMetadata
from chatkit_api.services.context import (
    MetadataDecodeError,
    decode_metadata_param,
    encode_metadata_param,
    format_metadata_as_context,
)

# {"property_type":"Villa","location":"Dubaï Marina","price":1250000}
VILLA_PARAM = "eyJwcm9wZXJ0eV90eXBlIjoiVmlsbGEiLCJsb2NhdGlvbiI6IkR1YmHDryBNYXJpbmEiLCJwcmljZSI6MTI1MDAwMH0="

FULL_METADATA = PropertyMetadata(
    property_type="Apartment",
    developer_full_name="Emaar Properties",
    location="Dubai Creek Harbour",
    final_investment_verdict="buy",
    price=1250000,
    currency="AED",
    surface_area_sqft=1450,
    price_per_sqft=862.07,
    overall_investment_score=78,
    market_demand_rate=0.825,
    market_supply_rate=0.4,
    liquidity_score=70,
    liquidity_period_month=6,
    location_score=88,
    roi_rental_yield_score=6.5,
    price_accuracy_score=91,
    demand_vacancy_risk_score=22,
    developer_trust_index=95,
    physical_condition_score=90,
    legal_clarity_score=100,
    completion_status="Off-plan",
    handover_quarter="Q4 2026",
    opportunities_summary="Strong rental demand near the new metro line.",
    risks_summary="Supply pipeline in the area is large.",
)


def test_decode_metadata_param() -> None:
    metadata = decode_metadata_param(VILLA_PARAM)

    assert metadata.property_type == "Villa"
    assert metadata.location == "Dubaï Marina"
    assert metadata.price == 1250000


def test_decode_tolerates_query_string_artifacts() -> None:
    # {"location":"Marina>>??"} with "+" turned into a space and padding stripped.
    metadata = decode_metadata_param("eyJsb2NhdGlvbiI6Ik1hcmluYT4 Pz8ifQ")

    assert metadata.location == "Marina>>??"


def test_decode_accepts_loosely_typed_values() -> None:
    # {"location":"Dubai","handover_quarter":2026,"price":"1250000","market_demand_rate":"0.65"}
    metadata = decode_metadata_param(
        "eyJsb2NhdGlvbiI6IkR1YmFpIiwiaGFuZG92ZXJfcXVhcnRlciI6MjAyNiwicHJpY2UiOiIxMjUwMDAwIiwibWFya2V0X2RlbWFuZF9yYXRlIjoiMC42NSJ9"
    )

    assert metadata.handover_quarter == 2026
    assert metadata.price == "1250000"
    lines = format_metadata_as_context(metadata).splitlines()
    assert "• Date de livraison : 2026" in lines
    assert "• Prix : 1250000 " in lines
    assert "• Taux de demande : 65%" in lines


def test_encode_then_decode_keeps_fields() -> None:
    param = encode_metadata_param(FULL_METADATA)

    assert decode_metadata_param(param) == FULL_METADATA


@pytest.mark.parametrize(
    "param",
    [
        "",
        "not base64 !!",
        "WzEsMl0=",  # [1,2]
        "eyJwcmljZSI6eyJhbW91bnQiOjF9fQ==",  # {"price":{"amount":1}}
        "aGVsbG8=",  # hello
    ],
)
def test_decode_rejects_bad_metadata(param: str) -> None:
    with pytest.raises(MetadataDecodeError):
        decode_metadata_param(param)


def test_format_full_context() -> None:
    context = format_metadata_as_context(FULL_METADATA)
    lines = context.splitlines()

    assert lines[0] == "📊 CONTEXTE DE L'INVESTISSEMENT IMMOBILIER"
    assert "• Type de bien : Apartment" in lines
    assert "• Prix : 1,250,000 AED" in lines
    assert "• Surface : 1450 pieds²" in lines
    assert "• Prix par pied² : 862.07 AED" in lines
    assert "• Rendement locatif : 6.5%" in lines
    assert "• Période de liquidité : 6 mois" in lines
    assert "• Taux de demande : 83%" in lines
    assert "• Taux d'offre : 40%" in lines
    assert "• Clarté juridique : 100/100" in lines
    assert "🎯 Verdict d'investissement : BUY" in lines
    assert "Strong rental demand near the new metro line." in lines
    assert lines[-1].startswith("Je dispose de toutes ces informations")


def test_format_empty_context_uses_placeholders() -> None:
    context = format_metadata_as_context(PropertyMetadata())
    lines = context.splitlines()

    assert "• Type de bien : N/A" in lines
    assert "• Prix : N/A " in lines
    assert "• Score de localisation : N/A/100" in lines
    assert "• Taux de demande : N/A%" in lines
    assert "🎯 Verdict d'investissement : N/A" in lines
    assert lines.count("Non spécifié") == 2


def test_format_treats_zero_scores_as_missing_but_keeps_zero_price() -> None:
    context = format_metadata_as_context(PropertyMetadata(price=0, location_score=0, market_demand_rate=0))

    assert "• Prix : 0 " in context.splitlines()
    assert "• Score de localisation : N/A/100" in context
    assert "• Taux de demande : N/A%" in context


@pytest.mark.asyncio
async def test_context_endpoint(configure_app, settings_factory, api_client) -> None:
    configure_app(settings_factory())

    async with api_client() as client:
        ok = await client.get("/api/chatkit/context", params={"metadata": VILLA_PARAM})
        bad = await client.get("/api/chatkit/context", params={"metadata": "WzEsMl0="})
        missing = await client.get("/api/chatkit/context")

    assert ok.status_code == 200
    payload = ok.json()
    assert payload["metadata"]["property_type"] == "Villa"
    assert "• Localisation : Dubaï Marina" in payload["context"]
    assert bad.status_code == 400
    assert bad.json()["detail"] == "metadata must be a JSON object"
    assert missing.status_code == 422


@pytest.mark.asyncio
async def test_chatkit_page_embeds_context(configure_app, settings_factory, api_client) -> None:
    configure_app(settings_factory(chatkit_workflow_id="wf_page"))

    async with api_client() as client:
        response = await client.get("/chatkit", params={"metadata": VILLA_PARAM})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "• Type de bien : Villa" in response.text
    assert '"wf_page"' in response.text
    assert "https://cdn.openai.com/chatkit/chatkit.js" in response.text
    assert "/api/create-session" in response.text


@pytest.mark.asyncio
async def test_chatkit_page_errors(configure_app, settings_factory, api_client) -> None:
    configure_app(settings_factory())

    async with api_client() as client:
        missing = await client.get("/chatkit")
        broken = await client.get("/chatkit", params={"metadata": "%%%"})

    assert missing.status_code == 400
    assert "Aucune métadonnée fournie" in missing.text
    assert broken.status_code == 400
    assert "Erreur lors du chargement des données" in broken.text


@pytest.mark.asyncio
async def test_root_redirects_to_widget(api_client) -> None:
    async with api_client() as client:
        response = await client.get("/", params={"metadata": "abc"})

    assert response.status_code == 307
    assert response.headers["location"] == "/chatkit?metadata=abc"
