"""
Per-plugin API for prayer notifications. Mounted at /api/components/notifications/.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict

from mihrab.plugins.prayer_times.methods import CalculationMethod


class PendingNotificationResponse(BaseModel):
    """Pydantic view of a pending notification."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    fire_at: datetime
    title: str
    body: str
    sound: Optional[str] = None
    channel: Optional[str] = None


class EnabledRequest(BaseModel):
    enabled: bool


class MethodRequest(BaseModel):
    method: str


class SyncResponse(BaseModel):
    scheduled: Optional[int] = None
    pending: int


def get_router(mihrab_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/components/notifications."""
    router = APIRouter(tags=["Notifications"])

    def _sync_response(scheduled: Optional[int]) -> SyncResponse:
        return SyncResponse(scheduled=scheduled, pending=len(mihrab_app.dispatcher.list_pending()))

    @router.get("/pending", response_model=List[PendingNotificationResponse])
    def list_pending() -> List[PendingNotificationResponse]:
        return [PendingNotificationResponse.model_validate(n) for n in mihrab_app.dispatcher.pending()]

    @router.put("/enabled", response_model=SyncResponse)
    def set_enabled(body: EnabledRequest) -> SyncResponse:
        """Persist the flag and resynchronise immediately."""
        mihrab_app.set_notifications_enabled(body.enabled, debounce=False)
        return _sync_response(mihrab_app.last_sync_result)

    @router.put("/method", response_model=SyncResponse)
    def set_method(body: MethodRequest) -> SyncResponse:
        try:
            method = CalculationMethod.parse(body.method)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown calculation method {body.method!r}")
        mihrab_app.set_calculation_method(method, debounce=False)
        return _sync_response(mihrab_app.last_sync_result)

    @router.post("/sync", response_model=SyncResponse)
    def sync_now() -> SyncResponse:
        return _sync_response(mihrab_app.sync_notifications())

    @router.post("/test")
    def send_test():
        if not mihrab_app.scheduler.send_test_notification():
            raise HTTPException(status_code=403, detail="Notification permission not granted")
        return {"status": "scheduled", "id": 9999}

    return router
