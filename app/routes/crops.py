"""Crop suitability routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.crops import CropProfileListResponse, CropRecommendationResponse
from app.services.crop_catalog import get_crop_profiles
from app.services.recommendation_service import RecommendationService

router = APIRouter(prefix="/crops", tags=["crops"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="crop recommendation failure")


@router.get("/recommendations", response_model=CropRecommendationResponse)
async def crop_recommendations(db: AsyncSession = Depends(get_db)) -> CropRecommendationResponse:
	try:
		return await RecommendationService(db).recommend()
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/profiles", response_model=CropProfileListResponse)
async def crop_profiles() -> CropProfileListResponse:
	try:
		profiles = list(get_crop_profiles())
	except Exception as exc:
		raise _map_error(exc) from exc
	return CropProfileListResponse(count=len(profiles), items=profiles)
