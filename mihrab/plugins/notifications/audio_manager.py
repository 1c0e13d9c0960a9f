import pygame
import threading
import logging
from pathlib import Path
from typing import Dict, Optional, Any
import requests
import os


class SoundPlayer:
    """Plays the sound tag attached to a delivered notification (e.g. "notifications.wav")."""

    def __init__(self, config: Dict[str, Any]):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.config = config
        self.sounds_dir = Path(os.path.expanduser(config.get("sounds_dir", "~/.mihrab/sounds")))
        self.volume = max(0.0, min(1.0, float(config.get("volume", 0.7))))
        self.initialized = False
        self.sounds_dir.mkdir(parents=True, exist_ok=True)

        # Fetch the default sound in the background if a URL is configured and the file is missing
        sound = config.get("sound")
        url = config.get("sound_url")
        if sound and url and not (self.sounds_dir / sound).exists():
            self._start_background_download(url, self.sounds_dir / sound)

    def _ensure_mixer(self) -> bool:
        if self.initialized:
            return True
        try:
            pygame.mixer.init()
            self.initialized = True
        except Exception as e:
            self.logger.error(f"Audio unavailable: {e}")
        return self.initialized

    def _start_background_download(self, url: str, file_path: Path) -> None:
        """Start a background thread to download a sound file"""
        def download():
            try:
                self.logger.info(f"Starting background download of {file_path.name}")
                self._download(url, file_path)
            except Exception as e:
                self.logger.error(f"Background download failed for {file_path.name}: {e}")

        thread = threading.Thread(target=download, daemon=True)
        thread.start()

    def _download(self, url: str, file_path: Path) -> bool:
        try:
            self.logger.info(f"Downloading sound from: {url} to {file_path}")
            response = requests.get(url, stream=True, timeout=30)
            response.raise_for_status()

            with open(file_path, 'wb') as f:
                for chunk in response.iter_content(chunk_size=8192):
                    f.write(chunk)

            self.logger.info(f"Sound file downloaded successfully to {file_path}")
            return True

        except Exception as e:
            self.logger.error(f"Error downloading sound file: {e}")
            return False

    def resolve(self, sound: Optional[str]) -> Optional[Path]:
        """Path of the sound tag, either absolute or relative to sounds_dir."""
        if not sound:
            return None
        path = Path(sound) if os.path.isabs(sound) else self.sounds_dir / sound
        return path if path.exists() else None

    def play(self, sound: Optional[str]) -> bool:
        """Play a sound tag; False when the file or the audio device is missing."""
        path = self.resolve(sound)
        if path is None:
            self.logger.warning(f"Sound file not found: {sound}")
            return False
        if not self._ensure_mixer():
            return False
        try:
            pygame.mixer.music.set_volume(self.volume)
            pygame.mixer.music.load(str(path))
            pygame.mixer.music.play()
            self.logger.info(f"Playing {path.name}")
            return True
        except Exception as e:
            self.logger.error(f"Error playing sound: {e}", exc_info=True)
            return False

    def stop(self) -> None:
        if self.initialized:
            pygame.mixer.music.stop()
