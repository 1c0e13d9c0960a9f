"""
Single place for scheduling: in-memory timers and DB-backed registered tasks.

Scheduling a timer under a name that is already pending cancels the pending one,
which is how rapid re-triggers collapse into the last one.
"""
import logging
import threading
from datetime import datetime, timezone
from threading import Timer
from typing import Any, Callable, Dict, List

from mihrab.core.task import get_next_run_from_db


class TaskManager:
    def __init__(self):
        self.tasks: Dict[str, Timer] = {}
        self.logger = logging.getLogger("TaskManager")
        self._registered_tasks: Dict[str, Callable[[], None]] = {}
        self._lock = threading.RLock()

    def schedule_task(self, name: str, callback: Callable, delay: float, one_time: bool = True) -> None:
        """Schedule a task to run after delay seconds. one_time=False repeats every delay seconds until cancelled."""
        try:
            self.logger.debug(f"Scheduling task {name} with delay {delay} seconds")
            with self._lock:
                if name in self.tasks:
                    self.logger.debug(f"Cancelling existing task {name}")
                    self.tasks[name].cancel()

                scheduled_time = datetime.now().timestamp() + delay
                timer = Timer(delay, self._run_task, args=(name, callback, delay, one_time))
                timer.daemon = True
                timer.scheduled_time = scheduled_time

                self.tasks[name] = timer
                timer.start()
            self.logger.debug(f"Timer started for {name}, scheduled for {datetime.fromtimestamp(scheduled_time)}")
        except Exception as e:
            self.logger.error(f"Error scheduling task {name}: {e}")

    def _run_task(self, name: str, callback: Callable, delay: float, one_time: bool) -> None:
        """Run the task and reschedule if needed."""
        current = threading.current_thread()
        try:
            callback()
            with self._lock:
                timer = self.tasks.get(name)
                if timer is current:
                    timer.last_run = datetime.now().timestamp()
                    if one_time:
                        del self.tasks[name]
        except Exception as e:
            self.logger.error(f"Error running task {name}: {e}")
            with self._lock:
                if one_time and self.tasks.get(name) is current:
                    del self.tasks[name]
        if not one_time:
            with self._lock:
                # A cancel_task() during the callback removes the entry; do not revive it
                still_wanted = self.tasks.get(name) is current
            if still_wanted:
                self.schedule_task(name, callback, delay, one_time)

    def cancel_task(self, name: str) -> bool:
        """Cancel a pending or repeating timer. Returns True if one was registered."""
        with self._lock:
            timer = self.tasks.pop(name, None)
        if timer is None:
            return False
        timer.cancel()
        self.logger.debug(f"Cancelled task {name}")
        return True

    def is_scheduled(self, name: str) -> bool:
        with self._lock:
            return name in self.tasks

    def register_task(self, component_name: str, runnable: Callable[[], None]) -> None:
        """Register a runnable for a task. runnable() does the work and updates next_run in DB."""
        self._registered_tasks[component_name] = runnable
        self.logger.debug(f"Registered task: {component_name}")

    def schedule_registered_task(self, component_name: str) -> None:
        """
        Schedule a registered task: run at next_run from DB (or immediately if past due).
        After running, the runnable updates next_run in DB; we reschedule again for the new next_run.
        """
        if component_name not in self._registered_tasks:
            self.logger.warning(f"No task registered: {component_name}")
            return
        next_run = get_next_run_from_db(component_name)
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        if next_run is None:
            delay = 0
        else:
            delay = max(0, int((next_run - now).total_seconds()))
        callback = lambda: self._run_registered_and_reschedule(component_name)
        self.schedule_task(component_name, callback, delay, one_time=True)

    def _run_registered_and_reschedule(self, component_name: str) -> None:
        """Run the registered runnable then reschedule for next_run from DB."""
        runnable = self._registered_tasks.get(component_name)
        if runnable:
            try:
                runnable()
            except Exception as e:
                self.logger.exception(f"Registered task {component_name} failed: {e}")
        self.schedule_registered_task(component_name)

    def run_task_now(self, component_name: str) -> None:
        """Run a registered task once immediately (e.g. manual refresh)."""
        runnable = self._registered_tasks.get(component_name)
        if not runnable:
            self.logger.warning(f"No task registered: {component_name}")
            return
        try:
            runnable()
        except Exception as e:
            self.logger.exception(f"Run task now {component_name} failed: {e}")

    def get_active_timers(self) -> List[Dict[str, Any]]:
        """Return list of active timer names and their next run time (for API)."""
        result = []
        with self._lock:
            timers = list(self.tasks.items())
        for name, timer in timers:
            if getattr(timer, "scheduled_time", None) is not None:
                next_run = datetime.fromtimestamp(timer.scheduled_time, tz=timezone.utc)
                result.append({"name": name, "next_run_at": next_run})
        return result

    def stop(self) -> None:
        """Stop all scheduled tasks."""
        with self._lock:
            timers = list(self.tasks.values())
            self.tasks.clear()
        for task in timers:
            task.cancel()
