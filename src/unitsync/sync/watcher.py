"""
unitsync - Descriptor Watcher

Forwards descriptor changes seen by watchdog to a coroutine on the event loop.
"""
import asyncio
from concurrent.futures import Future
from functools import partial
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from src.unitsync.models import DESCRIPTOR_FILE

DescriptorCallback = Callable[[Path], Awaitable[None]]


def _log_failure(path: Path, future: Future):
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.opt(exception=error).error(f"Handling descriptor change {path} failed: {error}")


class DescriptorEventHandler(FileSystemEventHandler):
    """Runs in the observer thread; hands descriptor paths to the loop."""

    def __init__(self, callback: DescriptorCallback, loop: asyncio.AbstractEventLoop, descriptor_name: str = DESCRIPTOR_FILE):
        self.callback = callback
        self.loop = loop
        self.descriptor_name = descriptor_name

    def on_created(self, event: FileSystemEvent):
        self._dispatch(event.src_path, event.is_directory)

    def on_modified(self, event: FileSystemEvent):
        self._dispatch(event.src_path, event.is_directory)

    def on_moved(self, event: FileSystemEvent):
        self._dispatch(event.dest_path, event.is_directory)

    def _dispatch(self, path, is_directory: bool):
        if is_directory:
            return
        path = Path(path)
        if path.name != self.descriptor_name:
            return
        future = asyncio.run_coroutine_threadsafe(self.callback(path), self.loop)
        future.add_done_callback(partial(_log_failure, path))
        return future


class DescriptorWatcher:
    """
    Watches workspace roots for descriptor changes.

    Deletions are ignored: a vanished descriptor is picked up by the next
    full synchronization.
    """

    def __init__(self, callback: DescriptorCallback):
        self.callback = callback
        self.observer = Observer()
        self.watches: Dict[str, object] = {}
        self._started = False

    def start(self):
        if self._started:
            return
        self.observer.start()
        self._started = True
        logger.info("Descriptor watcher started")

    def stop(self):
        if not self._started:
            return
        self.observer.stop()
        self.observer.join()
        self._started = False
        logger.info("Descriptor watcher stopped")

    def add_watch(self, path: Path, loop: Optional[asyncio.AbstractEventLoop] = None):
        key = str(Path(path))
        if key in self.watches:
            return
        handler = DescriptorEventHandler(self.callback, loop or asyncio.get_running_loop())
        self.watches[key] = self.observer.schedule(handler, key, recursive=True)
        logger.info(f"Watching descriptors under: {key}")

    def remove_watch(self, path: Path):
        watch = self.watches.pop(str(Path(path)), None)
        if watch is not None:
            self.observer.unschedule(watch)

    @property
    def is_running(self) -> bool:
        return self._started
