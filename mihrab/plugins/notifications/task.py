"""
Background task: re-run the notification sync once a day so the rolling
horizon stays filled, and persist next_run in DB.
"""
import logging
from typing import Any, Callable, Dict, Optional

from mihrab.core.task import (
    BaseTask,
    TaskType,
    parse_hhmm,
    update_after_run,
)

COMPONENT_NAME = "notification_refresh"
DEFAULT_REFRESH_TIME = "00:05"

logger = logging.getLogger(__name__)


def _schedule_config(config: Dict[str, Any]) -> Dict[str, str]:
    value = config.get("refresh_time") or DEFAULT_REFRESH_TIME
    try:
        hour, minute = parse_hhmm(value)
    except ValueError:
        logger.warning(f"Invalid notifications.refresh_time {value!r}, using {DEFAULT_REFRESH_TIME}")
        return {"time": DEFAULT_REFRESH_TIME}
    return {"time": f"{hour:02d}:{minute:02d}"}


class NotificationRefreshTask(BaseTask):
    """Calls the app's sync callback daily at notifications.refresh_time."""

    def __init__(self, config: Dict[str, Any], sync: Callable[[], Optional[int]]):
        super().__init__(COMPONENT_NAME, TaskType.DAILY, _schedule_config(config))
        self.sync = sync

    def run(self, **kwargs: Any) -> None:
        error = None
        try:
            scheduled = self.sync()
            self.logger.info(f"Daily notification refresh done: {scheduled}")
        except Exception as e:
            self.logger.exception(f"Notification refresh failed: {e}")
            error = str(e)
        update_after_run(self.component_name, error=error)
