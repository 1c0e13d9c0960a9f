"""
FastAPI server for the Mihrab API. Run with run_api_server(app) in a background thread.
Central endpoints: GET /api/plugins, GET /api/tasks, GET/PUT /api/settings. Per-plugin
routes are mounted from mihrab.plugins.<package>.api (get_router(mihrab_app)) under
/api/components/<package>/.
Docs when enabled: http://<host>:<port>/docs
"""
import importlib
import logging
import pkgutil
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

MADHABS = ("Shafi", "Hanafi")


class SettingsUpdate(BaseModel):
    """Partial update; omitted fields are left alone."""

    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    location_label: Optional[str] = None
    calculation_method: Optional[str] = None
    madhab: Optional[str] = None
    notifications_enabled: Optional[bool] = None


def _serialize_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Serialize datetime to ISO string (UTC)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def _plugin_names() -> List[str]:
    plugins_pkg = importlib.import_module("mihrab.plugins")
    return sorted(name for _mod, name, is_pkg in pkgutil.iter_modules(plugins_pkg.__path__) if is_pkg)


def create_app(mihrab_app: Any) -> FastAPI:
    """Create FastAPI app with routes that use the given MihrabApp instance."""
    app = FastAPI(title="Mihrab API", description="Prayer log, insights, prayer times and notifications")
    mounted: List[str] = []

    @app.get("/api/plugins")
    def list_plugins() -> List[Dict[str, Any]]:
        """List plugin packages and whether their router is mounted."""
        return [{"name": name, "mounted": name in mounted} for name in _plugin_names()]

    @app.get("/api/tasks")
    def list_tasks() -> Dict[str, Any]:
        """List scheduled tasks: DB schedules and active in-memory timers."""
        from mihrab.core.models import get_all_task_schedules

        db_schedules = get_all_task_schedules()
        for row in db_schedules:
            row["next_run_at"] = _serialize_datetime(row.get("next_run_at"))
            row["last_run_at"] = _serialize_datetime(row.get("last_run_at"))

        active_timers = mihrab_app.task_manager.get_active_timers()
        active_list = [
            {"name": t["name"], "next_run_at": _serialize_datetime(t["next_run_at"])}
            for t in active_timers
        ]

        return {"db_schedules": db_schedules, "active_timers": active_list}

    @app.get("/api/settings")
    def get_settings() -> Dict[str, Any]:
        return mihrab_app.settings.as_dict()

    @app.put("/api/settings")
    def update_settings(body: SettingsUpdate) -> Dict[str, Any]:
        """Apply changed preferences; notifications are resynchronised once, debounced."""
        from mihrab.plugins.prayer_times.methods import CalculationMethod

        if (body.latitude is None) != (body.longitude is None):
            raise HTTPException(status_code=400, detail="latitude and longitude must be given together")
        method = None
        if body.calculation_method is not None:
            try:
                method = CalculationMethod.parse(body.calculation_method)
            except ValueError:
                raise HTTPException(status_code=400, detail=f"Unknown calculation method {body.calculation_method!r}")
        if body.madhab is not None and body.madhab not in MADHABS:
            raise HTTPException(status_code=400, detail=f"madhab must be one of {', '.join(MADHABS)}")

        if body.latitude is not None:
            mihrab_app.set_coordinates(body.latitude, body.longitude, body.location_label)
        elif body.location_label is not None:
            mihrab_app.settings.location_label = body.location_label
        if method is not None:
            mihrab_app.set_calculation_method(method)
        if body.madhab is not None:
            mihrab_app.set_madhab(body.madhab)
        if body.notifications_enabled is not None:
            mihrab_app.set_notifications_enabled(body.notifications_enabled)
        return mihrab_app.settings.as_dict()

    # Mount per-plugin API routers from mihrab.plugins.<name>.api (get_router(mihrab_app))
    try:
        for name in _plugin_names():
            try:
                api_module = importlib.import_module(f"mihrab.plugins.{name}.api")
            except ImportError:
                continue
            if not hasattr(api_module, "get_router") or not callable(api_module.get_router):
                continue
            try:
                router = api_module.get_router(mihrab_app)
                if router is not None:
                    app.include_router(router, prefix=f"/api/components/{name}")
                    mounted.append(name)
            except Exception as e:
                logger.warning(f"Failed to mount API router for plugin {name}: {e}", exc_info=True)
    except Exception as e:
        logger.warning(f"Plugin API discovery failed: {e}", exc_info=True)

    return app


def run_api_server(mihrab_app: Any) -> None:
    """
    Start the API server in a daemon thread if api.enabled is true.
    Reads api.host (default 127.0.0.1) and api.port (default 8765) from config.
    """
    api_config = mihrab_app.config.data.get("api") or {}
    enabled = api_config.get("enabled", False)
    if not enabled:
        logger.info("API server not started: set api.enabled to true in your config file to enable.")
        return
    host = api_config.get("host", "127.0.0.1")
    port = int(api_config.get("port", 8765))
    fastapi_app = create_app(mihrab_app)

    def run_uvicorn():
        try:
            import uvicorn
            logger.info(f"API server listening at http://{host}:{port} (docs at /docs)")
            uvicorn.run(fastapi_app, host=host, port=port)
        except Exception as e:
            logger.exception(f"API server thread failed: {e}")

    thread = threading.Thread(target=run_uvicorn, daemon=True)
    thread.start()
    logger.info("API server thread started.")
