"""Notification when a single file on disk is modified."""

from __future__ import annotations

import errno
import logging
import os
import threading
from typing import Any, Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

log = logging.getLogger(__name__)

FileChangedCallback = Callable[[str], None]


class _FileHandler(FileSystemEventHandler):
    """Forwards modification events for one file and ignores the rest."""

    def __init__(self, target: str, filepath: str, callback: FileChangedCallback) -> None:
        super().__init__()
        self._target = target
        self._filepath = filepath
        self._callback = callback

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if os.path.realpath(os.fsdecode(event.src_path)) == self._target:
            self._callback(self._filepath)


class FileWatcher:
    """Watches one file at a time and calls back whenever it is modified."""

    def __init__(self) -> None:
        self._observer: Optional[Any] = None
        self._filepath: Optional[str] = None
        self._lock = threading.Lock()

    def __enter__(self) -> FileWatcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop_watching()

    @property
    def is_watching(self) -> bool:
        """Whether a file is currently being watched."""
        return self._observer is not None

    @property
    def filepath(self) -> Optional[str]:
        """The file being watched, or None."""
        return self._filepath

    def watch_file(self, filepath: str | os.PathLike[str], callback: FileChangedCallback) -> None:
        """Start calling ``callback(filepath)`` on every modification of the file.

        Any previous watch is stopped first. Raises OSError when the file's
        directory cannot be watched.
        """
        self.stop_watching()
        path = os.fspath(filepath)
        target = os.path.realpath(path)
        directory = os.path.dirname(target)
        if not os.path.isdir(directory):
            raise FileNotFoundError(errno.ENOENT, "directory not found", directory)
        observer = Observer()
        observer.schedule(_FileHandler(target, path, callback), directory, recursive=False)
        observer.start()
        with self._lock:
            self._observer = observer
            self._filepath = path
        log.info("Started watching config file: %s", path)

    def stop_watching(self) -> None:
        """Stop the current watch, if there is one."""
        with self._lock:
            observer = self._observer
            self._observer = None
            self._filepath = None
        if observer is None:
            return
        observer.stop()
        if observer is not threading.current_thread():
            observer.join()
        log.info("Stopped watching config file")