from __future__ import annotations

from pydantic import BaseModel, Field


class CongestionRateSchema(BaseModel):
    trip_id: str
    congestion_rate: float = Field(
        ..., description="Weighted actual / average dwell; above 1 is slower than usual"
    )
