"""Watch the configuration file and trigger re-discovery on change."""

import logging
import threading
import time
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

log = logging.getLogger(__name__)


class _ConfigChangeHandler(FileSystemEventHandler):
    """Fires the callback for events touching the config file, debounced."""

    def __init__(
        self,
        config_path: Path,
        debounce_seconds: float,
        callback: Callable[[], None],
    ) -> None:
        super().__init__()
        self._config_path = config_path
        self._debounce = debounce_seconds
        self._callback = callback
        self._last_event = float("-inf")
        self._lock = threading.Lock()

    def _touches_config(self, event: FileSystemEvent) -> bool:
        paths = [event.src_path, getattr(event, "dest_path", "")]
        return any(
            p and Path(str(p)).resolve() == self._config_path for p in paths
        )

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in ("opened", "closed_no_write"):
            return
        if not self._touches_config(event):
            return

        now = time.monotonic()
        with self._lock:
            if now - self._last_event < self._debounce:
                return
            self._last_event = now

        log.info("Configuration changed (%s)", event.event_type)
        try:
            self._callback()
        except Exception:
            log.exception("Re-discovery callback failed")


class ConfigWatcher:
    """Watches one configuration file for changes.

    The parent directory is watched, not the file, so that editors replacing
    the file through a rename are still noticed.
    """

    def __init__(
        self,
        config_path: Path,
        callback: Callable[[], None],
        debounce_seconds: float = 0.5,
    ) -> None:
        self._config_path = Path(config_path).resolve()
        self._observer: Observer | None = None
        self._handler = _ConfigChangeHandler(
            self._config_path, debounce_seconds, callback
        )

    def start(self) -> None:
        """Begin watching."""
        if self._observer is not None:
            return
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._observer = Observer()
        self._observer.schedule(
            self._handler, str(self._config_path.parent), recursive=False
        )
        self._observer.start()
        log.info("Watching %s for changes", self._config_path)

    def stop(self) -> None:
        """Stop watching and clean up."""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        log.info("Stopped watching %s", self._config_path)
