"""Property analysis metadata shared by the widget and voice endpoints."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# Scoring exports are loosely typed: quarters arrive as numbers, scores as strings.
# Numbers list ``int`` first so JSON integers stay integers.
Text = str | int | float | None
Number = int | float | str | None


class PropertyMetadata(BaseModel):
    """Investment analysis attached to a listing by the upstream scoring tool."""

    model_config = ConfigDict(extra="ignore")

    property_type: Text = None
    developer_full_name: Text = None
    location: Text = None
    final_investment_verdict: Text = None
    price: Number = None
    currency: Text = None
    surface_area_sqft: Number = None
    price_per_sqft: Number = None
    overall_investment_score: Number = None
    market_demand_rate: Number = None
    market_supply_rate: Number = None
    liquidity_score: Number = None
    liquidity_period_month: Number = None
    location_score: Number = None
    roi_rental_yield_score: Number = None
    price_accuracy_score: Number = None
    demand_vacancy_risk_score: Number = None
    developer_trust_index: Number = None
    physical_condition_score: Number = None
    legal_clarity_score: Number = None
    completion_status: Text = None
    handover_quarter: Text = None
    opportunities_summary: Text = None
    risks_summary: Text = None


class PropertyContextResponse(BaseModel):
    metadata: PropertyMetadata
    context: str
