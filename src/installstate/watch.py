"""Debounced file watching over the install inputs.

The controller owns every watch handle and the debounce timer. All of its
state is touched on one asyncio event loop: watchdog observer threads only
hand events over with call_soon_threadsafe, so events are consumed one at a
time from the loop's queue.

States:
    IDLE        no watch set
    WATCHING    one handle per existing input path
    DEBOUNCING  a change arrived, the single-shot timer is armed
    CHECKING    the check callable is running

Each new event re-arms the timer instead of queuing another check. Only one
check runs at a time; a deadline that fires mid-check is coalesced into one
re-run after the in-flight check. After a check the watch set is torn down
and rebuilt from the paths the check returned.
"""

import asyncio
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5

# Event types that do not imply a content change.
_IGNORED_EVENT_TYPES = frozenset({"opened", "closed", "closed_no_write"})

PathLike = Union[str, Path]
CheckFn = Callable[[], Awaitable[Optional[Sequence[PathLike]]]]


class WatchState(str, Enum):
    IDLE = "idle"
    WATCHING = "watching"
    DEBOUNCING = "debouncing"
    CHECKING = "checking"


class WatchControllerStoppedError(RuntimeError):
    """Raised when a stopped controller is asked to watch or check again."""
    pass


class FileEventHandler(FileSystemEventHandler):
    """Forwards content events for a single file to a callback.

    The platform watch is scheduled on the file's parent directory, so this
    handler sees sibling events too and filters them out. Saves performed as
    write-to-temp-then-rename arrive as moves whose destination is the file.
    """

    def __init__(self, path: Path, callback: Callable[[Path], None]):
        super().__init__()
        self.path = path
        self._target = os.fsdecode(path)
        self._callback = callback

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in _IGNORED_EVENT_TYPES:
            return
        touched = {os.fsdecode(event.src_path)}
        dest = getattr(event, "dest_path", "")
        if dest:
            touched.add(os.fsdecode(dest))
        if self._target in touched:
            self._callback(self.path)


class WatchController:
    """Owns a debounced watch session over the current input set."""

    def __init__(
        self,
        check: CheckFn,
        *,
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        self._check = check
        self._delay = delay
        self._observer_factory = observer_factory
        self._observer = None
        self._handles: List[Tuple[Path, object]] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._check_task: Optional[asyncio.Task] = None
        self._pending = False
        self._stopped = False
        self._state = WatchState.IDLE

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def watched_paths(self) -> List[Path]:
        return [path for path, _ in self._handles]

    @property
    def stopped(self) -> bool:
        return self._stopped

    def _bind_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _ensure_observer(self):
        if self._observer is None:
            self._observer = self._observer_factory()
            self._observer.start()
        return self._observer

    def _close_handles(self) -> None:
        if self._observer is not None and self._handles:
            self._observer.unschedule_all()
        self._handles = []

    def rebuild(self, paths: Iterable[PathLike]) -> None:
        """Tear down every watch handle and open one per existing path.

        Must be called from the event loop the controller runs on.
        """
        if self._stopped:
            raise WatchControllerStoppedError("Watch controller has been stopped")
        self._bind_loop()
        self._close_handles()
        observer = self._ensure_observer()

        for raw in paths:
            path = Path(os.path.abspath(raw))
            if not path.exists():
                logger.debug("Not watching %s: does not exist yet", path)
                continue
            handler = FileEventHandler(path, self._post)
            try:
                watch = observer.schedule(handler, str(path.parent), recursive=False)
            except OSError as e:
                logger.debug("Not watching %s: %s", path, e)
                continue
            self._handles.append((path, watch))

        logger.debug("Watching %d file(s)", len(self._handles))
        if self._state is WatchState.IDLE:
            self._state = WatchState.WATCHING

    def _post(self, path: Path) -> None:
        # Runs on an observer thread
        loop = self._loop
        if self._stopped or loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self.notify, path)

    def notify(self, path: Optional[PathLike] = None) -> None:
        """Record a change event and (re)arm the debounce timer."""
        if self._stopped:
            return
        loop = self._bind_loop()
        logger.debug("Change detected: %s", path)
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self._delay, self._on_deadline)
        if self._state is not WatchState.CHECKING:
            self._state = WatchState.DEBOUNCING

    def request_check(self) -> None:
        """Run a check now, through the same one-at-a-time path as debounced checks."""
        if self._stopped:
            raise WatchControllerStoppedError("Watch controller has been stopped")
        self._bind_loop()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._start_check()

    def _on_deadline(self) -> None:
        self._timer = None
        self._start_check()

    def _start_check(self) -> None:
        if self._stopped:
            return
        if self._check_task is not None and not self._check_task.done():
            self._pending = True
            return
        self._check_task = self._loop.create_task(self._run_checks())

    async def _run_checks(self) -> None:
        while True:
            self._pending = False
            self._state = WatchState.CHECKING
            try:
                paths = await self._check()
            except Exception:
                logger.exception("Staleness check failed")
                paths = None
            if self._stopped:
                return
            if paths is not None:
                self.rebuild(paths)
            if not self._pending:
                break

        if self._timer is not None:
            self._state = WatchState.DEBOUNCING
        elif self._observer is not None:
            self._state = WatchState.WATCHING
        else:
            self._state = WatchState.IDLE

    async def wait_idle(self) -> None:
        """Wait until no check is running."""
        while self._check_task is not None and not self._check_task.done():
            await asyncio.wait({self._check_task})

    def stop(self) -> None:
        """Close every handle, cancel the timer and any in-flight check. Idempotent."""
        if self._stopped:
            return
        self._stopped = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._check_task is not None and not self._check_task.done():
            self._check_task.cancel()
        self._close_handles()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        self._state = WatchState.IDLE
