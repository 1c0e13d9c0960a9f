from datetime import date, datetime
from typing import Dict, Any, Optional
import logging
import sys
import time

from .config import Config
from .db import init_db
from .settings import Settings, METHOD_SOURCE_AUTO, METHOD_SOURCE_USER
from .task_manager import TaskManager
from .clock import local_now, local_today
from .prayers import DEFAULT_COORDINATES, DEFAULT_LOCATION_LABEL, Coordinates
from mihrab.plugins.insights import engine as insights
from mihrab.plugins.location.service import LocationFix, LocationService
from mihrab.plugins.notifications.audio_manager import SoundPlayer
from mihrab.plugins.notifications.dispatcher import LocalDispatcher, NotificationDispatcher
from mihrab.plugins.notifications.scheduler import NotificationScheduler
from mihrab.plugins.notifications.task import NotificationRefreshTask
from mihrab.plugins.prayer_log.service import LogStore
from mihrab.plugins.prayer_log.stats import Stats, compute_stats
from mihrab.plugins.prayer_times import service as prayer_times
from mihrab.plugins.prayer_times.methods import CalculationMethod, method_for_country
from mihrab.plugins.prayer_times.prayer_base import DayTimes, PrayerBackend, create_backend
from mihrab.plugins.tasbih.service import TasbihCounter

RESCHEDULE_TASK = "notification_reschedule"
LOCATION_TASK = "location_lookup"


class MihrabApp:
    """Owns the store, settings, calculator, dispatcher, scheduler and timers."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        db_url: Optional[str] = None,
        start_services: bool = True,
        backend: Optional[PrayerBackend] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)

        self.config = Config(config_path=config_path, watch=start_services)
        self.config.register_change_callback(self.handle_config_change)

        if start_services:
            self._setup_logging()

        # Initialize database (before services so tables exist)
        init_db(self.config.data, db_url=db_url)

        self.task_manager = TaskManager()
        self.settings = Settings()
        self.log_store = LogStore()
        self.tasbih = TasbihCounter()
        self.location_service = LocationService(self.config.section("location"))

        self._custom_backend = backend is not None
        self.backend = backend or create_backend(self._backend_config())

        notification_config = self._notification_config()
        self.sound_player = SoundPlayer(notification_config)
        self.dispatcher = dispatcher or LocalDispatcher(notification_config, self.task_manager, self.sound_player)
        self.scheduler = NotificationScheduler(self.backend, self.dispatcher, notification_config)
        self.refresh_task = NotificationRefreshTask(notification_config, self.sync_notifications)
        self.ticker = prayer_times.NextPrayerTicker(self.task_manager, self.next_prayer, self._on_tick)
        self.last_sync_result: Optional[int] = None

        if start_services:
            self.start()

    def _setup_logging(self):
        """Configure logging to write to both file and stdout"""
        root_logger = logging.getLogger()
        # Drop the bootstrap stdout handler from main.setup_basic_logging
        if root_logger.handlers:
            root_logger.handlers.pop()
        log_config = self.config.section("logging")
        root_logger.setLevel(getattr(logging, str(log_config.get("level", "INFO")).upper(), logging.INFO))

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        )

        if log_config.get("file"):
            file_handler = logging.FileHandler(log_config["file"])
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        logging.info("Mihrab starting...")

    def _backend_config(self) -> Dict[str, Any]:
        cfg = self.config.section("prayer_times")
        cfg.setdefault("cache_dir", self.config.section("cache").get("directory"))
        cfg.setdefault("madhab", self.settings.madhab)
        return cfg

    def _notification_config(self) -> Dict[str, Any]:
        cfg = self.config.section("notifications")
        cfg["timezone"] = self.config.section("prayer_times").get("timezone")
        return cfg

    @property
    def timezone_name(self) -> Optional[str]:
        return self.config.section("prayer_times").get("timezone")

    # Queries

    def today(self) -> date:
        return local_today(self.timezone_name)

    def compute_stats(self, day: Optional[date] = None) -> Stats:
        return compute_stats(self.log_store.snapshot(), day or self.today())

    def recommend(self, day: Optional[date] = None) -> insights.Recommendation:
        day = day or self.today()
        return insights.recommend(
            self.log_store.snapshot(),
            day,
            ritual_total_all_time=self.tasbih.total(),
            ritual_total_today=self.tasbih.count_for(day),
        )

    def effective_coordinates(self) -> Coordinates:
        return self.settings.coordinates or DEFAULT_COORDINATES

    def calculation_method(self) -> CalculationMethod:
        stored = self.settings.calculation_method
        try:
            return CalculationMethod.parse(stored)
        except ValueError:
            self.logger.warning(f"Unknown stored calculation method {stored!r}, using Muslim World League")
            return CalculationMethod.MUSLIM_WORLD_LEAGUE

    def times_for_day(self, day: date) -> DayTimes:
        return prayer_times.times_for_day(self.backend, self.settings.coordinates, day, self.calculation_method())

    def next_prayer(self, now: Optional[datetime] = None) -> prayer_times.NextPrayer:
        return prayer_times.next_prayer(
            self.backend,
            self.settings.coordinates,
            self.calculation_method(),
            now or local_now(self.timezone_name),
        )

    def _on_tick(self, upcoming: prayer_times.NextPrayer) -> None:
        self.logger.debug(upcoming.describe())

    # Inputs that drive the notification sync

    def _reschedule(self, debounce: bool) -> None:
        if debounce:
            self.request_reschedule()
        else:
            self.sync_notifications()

    def set_coordinates(self, lat: float, lng: float, label: Optional[str] = None, debounce: bool = True) -> None:
        self.settings.coordinates = (lat, lng)
        if label is not None:
            self.settings.location_label = label
        self._reschedule(debounce)

    def set_calculation_method(self, method: CalculationMethod, debounce: bool = True) -> None:
        """An explicit choice; auto-detection never overrides it afterwards."""
        self.settings.set_calculation_method(method.value, METHOD_SOURCE_USER)
        self.logger.info(f"Calculation method set to {method.value}")
        self._reschedule(debounce)

    def set_madhab(self, madhab: str, debounce: bool = True) -> None:
        """Asr juristic school; only the HTTP calculator takes it into account."""
        self.settings.madhab = madhab
        if not self._custom_backend:
            self.backend = create_backend(self._backend_config())
            self.scheduler.backend = self.backend
        self._reschedule(debounce)

    def set_notifications_enabled(self, enabled: bool, debounce: bool = True) -> None:
        self.settings.notifications_enabled = enabled
        self.logger.info(f"Notifications {'enabled' if enabled else 'disabled'}")
        self._reschedule(debounce)

    def apply_location_fix(self, fix: LocationFix, debounce: bool = True) -> None:
        """Store a fix by replacement. Only the first fix may pick the method from the country."""
        first_fix = self.settings.coordinates is None

        if fix.is_default:
            # The Mecca fallback is display-only and is never persisted as a real fix
            if first_fix:
                self.settings.location_label = DEFAULT_LOCATION_LABEL
            return

        self.settings.coordinates = fix.coordinates
        self.settings.location_label = fix.label
        self.logger.info(f"Location set to {fix.label} ({fix.coordinates.lat:.4f}, {fix.coordinates.lng:.4f})")

        if first_fix and fix.country_code and self.settings.method_source != METHOD_SOURCE_USER:
            method = method_for_country(fix.country_code)
            self.settings.set_calculation_method(method.value, METHOD_SOURCE_AUTO)
            self.logger.info(f"Calculation method auto-selected for {fix.country_code}: {method.value}")

        self._reschedule(debounce)

    def refresh_location(self) -> LocationFix:
        fix = self.location_service.resolve()
        self.apply_location_fix(fix)
        return fix

    def request_reschedule(self) -> None:
        """Collapse rapid changes: only the last request within the debounce window runs."""
        delay = float(self.config.section("notifications").get("debounce_seconds", 1.0))
        self.task_manager.schedule_task(RESCHEDULE_TASK, self.sync_notifications, delay)

    def sync_notifications(self, now: Optional[datetime] = None) -> Optional[int]:
        self.last_sync_result = self.scheduler.sync(
            self.settings.coordinates,
            self.calculation_method(),
            self.settings.notifications_enabled,
            now=now,
        )
        return self.last_sync_result

    def handle_config_change(self, new_config: Dict[str, Any]) -> None:
        """Rebuild config-driven services and resynchronise notifications"""
        self.logger.info("Handling config change")
        try:
            self.location_service = LocationService(self.config.section("location"))
            if not self._custom_backend:
                self.backend = create_backend(self._backend_config())
                self.scheduler.backend = self.backend

            notification_config = self._notification_config()
            self.scheduler.config = notification_config
            if isinstance(self.dispatcher, LocalDispatcher):
                self.dispatcher.config = notification_config
            self.request_reschedule()
        except Exception as e:
            self.logger.error(f"Error handling config change: {e}", exc_info=True)

    # Lifecycle

    def start(self) -> None:
        try:
            from mihrab.api import run_api_server
            run_api_server(self)
        except Exception as e:
            self.logger.warning(f"API server not started: {e}")

        if isinstance(self.dispatcher, LocalDispatcher):
            # Entries persisted by a previous run
            self.dispatcher.arm()

        # A new schedule row has no next_run, so the first sync happens right away
        self.refresh_task.ensure_scheduled()
        self.task_manager.register_task(self.refresh_task.component_name, self.refresh_task.run)
        self.task_manager.schedule_registered_task(self.refresh_task.component_name)

        if self.settings.coordinates is None:
            self.task_manager.schedule_task(LOCATION_TASK, self.refresh_location, 0)

        self.ticker.start()

    def run(self):
        """Block until interrupted; all work happens on timer threads."""
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.logger.info("Interrupted, shutting down")
        finally:
            self.stop()

    def stop(self) -> None:
        self.ticker.stop()
        self.task_manager.stop()
        self.sound_player.stop()
        self.config.cleanup()
