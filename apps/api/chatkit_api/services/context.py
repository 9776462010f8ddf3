"""Decode URL-embedded property metadata and render it as a chat prompt."""
from __future__ import annotations

import base64
import json
import math
from decimal import ROUND_HALF_UP, Decimal

from pydantic import ValidationError

from ..schemas.property import PropertyMetadata

NOT_AVAILABLE = "N/A"
NOT_SPECIFIED = "Non spécifié"


class MetadataDecodeError(ValueError):
    """Raised when the ``metadata`` query parameter cannot be decoded."""


def decode_metadata_param(param: str) -> PropertyMetadata:
    """Decode a base64-encoded JSON object into property metadata."""

    # Query-string decoding turns an unescaped "+" into a space.
    cleaned = param.strip().replace(" ", "+")
    if not cleaned:
        raise MetadataDecodeError("metadata parameter is empty")

    padded = cleaned + "=" * (-len(cleaned) % 4)
    try:
        raw = base64.b64decode(padded, validate=True)
        payload = json.loads(raw.decode("utf-8"))
    except ValueError as exc:
        raise MetadataDecodeError("metadata is not base64-encoded JSON") from exc

    if not isinstance(payload, dict):
        raise MetadataDecodeError("metadata must be a JSON object")

    try:
        return PropertyMetadata.model_validate(payload)
    except ValidationError as exc:
        raise MetadataDecodeError(f"metadata has invalid fields: {exc.error_count()} error(s)") from exc


def encode_metadata_param(metadata: PropertyMetadata | dict) -> str:
    """Inverse of :func:`decode_metadata_param`, used to build widget links."""

    if isinstance(metadata, PropertyMetadata):
        metadata = metadata.model_dump(exclude_none=True)
    raw = json.dumps(metadata, ensure_ascii=False).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def _number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _as_number(value: object) -> float | None:
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _or_na(value: str | float | None, fallback: str = NOT_AVAILABLE) -> str:
    """Render a value, treating missing, empty and zero as unavailable."""

    if not value:
        return fallback
    if isinstance(value, (int, float)):
        return _number(value)
    return value


def _grouped(value: str | float | None) -> str:
    if value is None:
        return NOT_AVAILABLE
    if isinstance(value, str):
        return value or NOT_AVAILABLE
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def _percent(rate: str | float | None) -> str:
    number = _as_number(rate) if rate else None
    if number is None or not math.isfinite(number):
        return NOT_AVAILABLE
    scaled = Decimal(repr(float(number))) * 100
    return str(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_metadata_as_context(metadata: PropertyMetadata) -> str:
    """Render the structured investment context injected as the first message."""

    m = metadata
    currency = m.currency or ""
    verdict = str(m.final_investment_verdict).upper() if m.final_investment_verdict else NOT_AVAILABLE

    lines = [
        "📊 CONTEXTE DE L'INVESTISSEMENT IMMOBILIER",
        "",
        "🏢 Informations générales",
        f"• Type de bien : {_or_na(m.property_type)}",
        f"• Promoteur : {_or_na(m.developer_full_name)}",
        f"• Localisation : {_or_na(m.location)}",
        f"• Statut : {_or_na(m.completion_status)}",
        f"• Date de livraison : {_or_na(m.handover_quarter)}",
        "",
        "💰 Données financières",
        f"• Prix : {_grouped(m.price)} {currency}",
        f"• Surface : {_or_na(m.surface_area_sqft)} pieds²",
        f"• Prix par pied² : {_or_na(m.price_per_sqft)} {currency}",
        f"• Rendement locatif : {_or_na(m.roi_rental_yield_score)}%",
        "",
        "📈 Scores d'évaluation",
        f"• Score global d'investissement : {_or_na(m.overall_investment_score)}/100",
        f"• Score de localisation : {_or_na(m.location_score)}/100",
        f"• Score de liquidité : {_or_na(m.liquidity_score)}/100",
        f"• Période de liquidité : {_or_na(m.liquidity_period_month)} mois",
        f"• Indice de confiance promoteur : {_or_na(m.developer_trust_index)}/100",
        f"• État physique : {_or_na(m.physical_condition_score)}/100",
        f"• Clarté juridique : {_or_na(m.legal_clarity_score)}/100",
        "",
        "📊 Analyse du marché",
        f"• Taux de demande : {_percent(m.market_demand_rate)}%",
        f"• Taux d'offre : {_percent(m.market_supply_rate)}%",
        f"• Risque de vacance : {_or_na(m.demand_vacancy_risk_score)}/100",
        f"• Précision du prix : {_or_na(m.price_accuracy_score)}/100",
        "",
        "✅ Opportunités",
        _or_na(m.opportunities_summary, NOT_SPECIFIED),
        "",
        "⚠️ Risques",
        _or_na(m.risks_summary, NOT_SPECIFIED),
        "",
        f"🎯 Verdict d'investissement : {verdict}",
        "",
        "---",
        "",
        "Je dispose de toutes ces informations pour répondre à vos questions sur cet investissement immobilier.",
    ]
    return "\n".join(lines)
