from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from src.adapters.api.dependencies import get_congestion_rate_service
from src.adapters.api.schemas.congestion import CongestionRateSchema
from src.app.services.congestion_rate_service import CongestionRateService
from src.domain.exceptions import InvalidStateError

router = APIRouter(prefix="/trips", tags=["congestion"])


@router.get("/{trip_id}/congestion-rate", response_model=CongestionRateSchema)
async def get_congestion_rate(
    trip_id: str,
    service: CongestionRateService = Depends(get_congestion_rate_service),
) -> CongestionRateSchema:
    try:
        rate = await service.get_congestion_rate(trip_id)
    except InvalidStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return CongestionRateSchema(trip_id=trip_id, congestion_rate=rate)
