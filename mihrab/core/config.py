import yaml
from pathlib import Path
import os
from typing import Any, Dict, Iterable, Optional, List, Callable
import logging
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler, FileModifiedEvent
import time
import re

DEFAULT_CONFIG_DIR = Path.home() / ".mihrab"

_ENV_LINE = re.compile(r'^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$')
_ENV_REF = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)')


def default_config(config_dir: Path) -> Dict[str, Any]:
    """Configuration written on first run."""
    return {
        "database": {
            "path": str(config_dir / "mihrab.db"),
        },
        "logging": {
            "level": "INFO",
            "file": str(config_dir / "mihrab.log"),
        },
        "api": {
            "enabled": True,
            "host": "127.0.0.1",
            "port": 8765,
        },
        "cache": {
            "directory": str(config_dir / "cache"),
        },
        "prayer_times": {
            "backend": "adhanpy",  # adhanpy (offline) or aladhan (HTTP)
            "timezone": None,  # None = system local zone
        },
        "location": {
            "latitude": None,
            "longitude": None,
            "lookup_url": "https://api.bigdatacloud.net/data/reverse-geocode-client",
            "language": "en",
            "timeout": 10,
        },
        "notifications": {
            "permission_granted": True,
            "horizon_days": 7,
            "debounce_seconds": 1.0,
            "refresh_time": "00:05",
            "sound": "notifications.wav",
            "channel": "prayers_channel",
            "sounds_dir": str(config_dir / "sounds"),
            "title_template": "It is time for {prayer}",
            "body_template": "Rise to your prayer, {prayer} has begun.",
        },
    }


def load_env_file(candidates: Iterable[Path]) -> int:
    """Export KEY=VALUE lines from the first existing file. Variables already set win.
    Returns the number of variables exported.
    """
    env_file = next((path for path in candidates if path.exists()), None)
    if env_file is None:
        logging.debug("No .env file found, skipping environment variable loading")
        return 0

    logging.info(f"Loading environment variables from: {env_file}")
    exported = 0
    try:
        for line in env_file.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            match = _ENV_LINE.match(line)
            if not match:
                continue
            key, value = match.groups()
            if key not in os.environ:
                os.environ[key] = value.strip('"').strip("'")
                exported += 1
    except Exception as e:
        logging.warning(f"Error loading .env file: {e}")
    return exported


def substitute_env(data: Any) -> Any:
    """Replace $VAR and ${VAR} inside every string of a config tree. Unknown names stay as written."""
    if isinstance(data, dict):
        return {key: substitute_env(value) for key, value in data.items()}
    if isinstance(data, list):
        return [substitute_env(item) for item in data]
    if isinstance(data, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1) or m.group(2), m.group(0)), data)
    return data


def diff_config(old: Dict[str, Any], new: Dict[str, Any], path: str = "") -> List[str]:
    """Dotted-key description of every changed, added or removed value."""
    changes = []
    for key in sorted(set(old) | set(new), key=str):
        dotted = f"{path}.{key}" if path else str(key)
        if key not in new:
            changes.append(f"removed {dotted}: {old[key]}")
        elif key not in old:
            changes.append(f"added {dotted}: {new[key]}")
        elif isinstance(old[key], dict) and isinstance(new[key], dict):
            changes.extend(diff_config(old[key], new[key], dotted))
        elif old[key] != new[key]:
            changes.append(f"changed {dotted}: {old[key]} -> {new[key]}")
    return changes


class ConfigChangeHandler(FileSystemEventHandler):
    """Reloads the config when its file is written, at most once per cooldown."""

    def __init__(self, config, cooldown: float = 1.0):
        self.config = config
        self.cooldown = cooldown
        self.last_reload = 0.0

    def on_modified(self, event):
        if not isinstance(event, FileModifiedEvent):
            return
        if Path(event.src_path).resolve() != self.config.config_file:
            return

        now = time.time()
        if now - self.last_reload < self.cooldown:
            return
        self.last_reload = now
        try:
            self.config.reload()
        except Exception as e:
            logging.error(f"Error handling config change: {e}")


class Config:
    def __init__(self, config_path: Optional[str] = None, watch: bool = True):
        self.change_callbacks: List[Callable] = []
        self._loading = False  # Guards against re-entrant reloads

        if config_path:
            self.config_file = Path(config_path).expanduser().resolve()
            self.config_dir = self.config_file.parent
        else:
            self.config_dir = DEFAULT_CONFIG_DIR
            self.config_file = self.config_dir / "config.yaml"
        logging.debug(f"Using config file: {self.config_file}")

        load_env_file([self.config_dir / ".env", Path.cwd() / ".env"])
        self._ensure_config_exists()
        self.data: Dict[str, Any] = {}
        self._load_config()

        self.observer = None
        if watch:
            self.observer = Observer()
            self.observer.schedule(ConfigChangeHandler(self), str(self.config_dir), recursive=False)
            self.observer.start()
            logging.info(f"Watching {self.config_file} for changes")

    def register_change_callback(self, callback: Callable) -> None:
        """Register a callback to be called with the new data when config changes"""
        self.change_callbacks.append(callback)

    def section(self, name: str) -> Dict[str, Any]:
        """Config section merged over its defaults, so missing keys never raise."""
        merged = dict(default_config(self.config_dir).get(name, {}))
        merged.update(self.data.get(name) or {})
        return merged

    def reload(self) -> None:
        """Reload config, log what changed and notify listeners"""
        if self._loading:
            return

        self._loading = True
        try:
            logging.info("Config file change detected - reloading configuration")
            # Give the writer a moment to finish
            time.sleep(0.1)

            old = dict(self.data)
            if not self._load_config():
                return

            for change in diff_config(old, self.data):
                logging.info(f"Config {change}")

            for callback in self.change_callbacks:
                try:
                    callback(self.data)
                except Exception as e:
                    logging.error(f"Error in config change callback: {e}")
        finally:
            self._loading = False

    def cleanup(self) -> None:
        """Stop the file observer"""
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None

    def _ensure_config_exists(self) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        if not self.config_file.exists():
            logging.info(f"Creating default config file: {self.config_file}")
            self.config_file.write_text(yaml.dump(default_config(self.config_dir)))

    def _load_config(self) -> bool:
        """Read the file into self.data. On error the previous data (or the defaults) stays."""
        try:
            with open(self.config_file) as f:
                new_data = yaml.safe_load(f)
            if not isinstance(new_data, dict):
                raise ValueError("Invalid config format: root must be a dictionary")
        except Exception as e:
            logging.error(f"Error loading config: {e}")
            if self.data:
                logging.info("Keeping previous configuration")
            else:
                logging.info("Using default configuration")
                self.data = default_config(self.config_dir)
            return False

        self.data = substitute_env(new_data)
        log_file = (self.data.get("logging") or {}).get("file")
        if log_file:
            self.data["logging"]["file"] = os.path.expanduser(log_file)
        return True

