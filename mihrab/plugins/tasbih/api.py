"""
Per-plugin API for the recitation counter. Mounted at /api/components/tasbih/.
"""
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from .service import DHIKR_LIST, DhikrSession, find_dhikr


class CountsResponse(BaseModel):
    total: int
    today: int


class DhikrResponse(BaseModel):
    id: int
    text: str
    target: int


class SessionResponse(BaseModel):
    dhikr: DhikrResponse
    count: int
    completed: bool
    progress: float


class RecordRequest(BaseModel):
    count: int = 1


def _session_response(session: DhikrSession) -> SessionResponse:
    d = session.dhikr
    return SessionResponse(
        dhikr=DhikrResponse(id=d.id, text=d.text, target=d.target),
        count=session.count,
        completed=session.completed,
        progress=session.progress(),
    )


def get_router(mihrab_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/components/tasbih."""
    router = APIRouter(tags=["Tasbih"])
    session = DhikrSession(mihrab_app.tasbih, mihrab_app.today)

    @router.get("/counts", response_model=CountsResponse)
    def get_counts() -> CountsResponse:
        return CountsResponse(
            total=mihrab_app.tasbih.total(),
            today=mihrab_app.tasbih.count_for(mihrab_app.today()),
        )

    @router.post("/counts", response_model=CountsResponse)
    def record(request: RecordRequest) -> CountsResponse:
        if request.count < 1:
            raise HTTPException(status_code=400, detail="count must be positive")
        today = mihrab_app.today()
        mihrab_app.tasbih.record(today, request.count)
        return CountsResponse(total=mihrab_app.tasbih.total(), today=mihrab_app.tasbih.count_for(today))

    @router.get("/dhikr", response_model=List[DhikrResponse])
    def list_dhikr() -> List[DhikrResponse]:
        return [DhikrResponse(id=d.id, text=d.text, target=d.target) for d in DHIKR_LIST]

    @router.get("/session", response_model=SessionResponse)
    def get_session() -> SessionResponse:
        return _session_response(session)

    @router.post("/session/tap", response_model=SessionResponse)
    def tap() -> SessionResponse:
        session.tap()
        return _session_response(session)

    @router.post("/session/reset", response_model=SessionResponse)
    def reset() -> SessionResponse:
        session.reset()
        return _session_response(session)

    @router.post("/session/select/{dhikr_id}", response_model=SessionResponse)
    def select(dhikr_id: int) -> SessionResponse:
        index = find_dhikr(dhikr_id)
        if index is None:
            raise HTTPException(status_code=404, detail=f"Unknown dhikr {dhikr_id}")
        session.select(index)
        return _session_response(session)

    return router
