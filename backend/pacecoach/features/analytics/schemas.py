"""
Scenario adjustment payload schemas.

Pydantic schemas for the free-form `payload` of a ScenarioAdjustment.
Stored payloads use camelCase keys; snake_case is accepted too.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class RemovePenaltyTaxonomyPayload(_Payload):
    """Drop every penalty of one infraction category."""
    taxonomy_code: str = Field(..., alias="taxonomyCode", min_length=1)


class OverridePenaltySecondsPayload(_Payload):
    """
    Set seconds applied on matching penalties.

    Penalties are matched by taxonomy code when given, otherwise by
    penalty rule id. With neither, nothing matches.
    """
    new_seconds: float = Field(..., alias="newSeconds", ge=0)
    taxonomy_code: Optional[str] = Field(default=None, alias="taxonomyCode")
    penalty_rule_id: Optional[str] = Field(default=None, alias="penaltyRuleId")


class CleanTimeDeltaPayload(_Payload):
    """Take `seconds_delta` off total time, optionally for one run type only."""
    seconds_delta: float = Field(..., alias="secondsDelta")
    run_type_code: Optional[str] = Field(default=None, alias="runTypeCode")
