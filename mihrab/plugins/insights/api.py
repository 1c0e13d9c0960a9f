"""
Per-plugin API for daily insights. Mounted at /api/components/insights/.
"""
from dataclasses import asdict
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel


class ContentItemResponse(BaseModel):
    id: str
    text: str
    source: str
    category: str


class RecommendationResponse(BaseModel):
    category: str
    message: str
    item: ContentItemResponse
    features: Dict[str, Any]


def get_router(mihrab_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/components/insights."""
    router = APIRouter(tags=["Insights"])

    @router.get("/today", response_model=RecommendationResponse)
    def today(day: Optional[str] = None) -> RecommendationResponse:
        try:
            target = date.fromisoformat(day) if day else None
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid date {day!r}, expected YYYY-MM-DD")
        rec = mihrab_app.recommend(target)
        return RecommendationResponse(
            category=rec.category.value,
            message=rec.message,
            item=ContentItemResponse(
                id=rec.item.id, text=rec.item.text, source=rec.item.source, category=rec.item.category.value
            ),
            features=asdict(rec.features),
        )

    return router
