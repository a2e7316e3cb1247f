"""Staleness monitor: the feature a presentation layer drives.

Queries the probe, compares the current and saved snapshots, publishes a
CheckResult and keeps the watch set in step with the probe's file list. A
status bar, a notifier or the `watch` CLI command only supply the publish
callback.
"""

import logging
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from installstate.codes import CheckStatus
from installstate.config import Settings
from installstate.kernel.compare import CheckResult, summarize
from installstate.probe import InstallState, query_state
from installstate.watch import WatchController
from installstate._internal.diff_view import DependencyDiff, show_diff

logger = logging.getLogger(__name__)

QueryFn = Callable[[], Awaitable[Optional[InstallState]]]
PublishFn = Callable[[CheckResult], None]


class StalenessMonitor:
    """Publishes a CheckResult whenever the install inputs may have drifted."""

    def __init__(
        self,
        settings: Settings,
        publish: PublishFn,
        *,
        query: Optional[QueryFn] = None,
        observer_factory=None,
    ):
        self._settings = settings
        self._publish = publish
        self._query = query or (lambda: query_state(settings))
        watch_kwargs = {"delay": settings.debounce_seconds}
        if observer_factory is not None:
            watch_kwargs["observer_factory"] = observer_factory
        self._watch = WatchController(self.check, **watch_kwargs)
        self._root: Optional[Path] = None
        self._state_contents_file: Optional[Path] = None
        self._installing = False
        self.last_result: Optional[CheckResult] = None

    @property
    def watch(self) -> WatchController:
        return self._watch

    def start(self) -> None:
        """Schedule the initial check. Must be called from a running event loop."""
        self._watch.request_check()

    def stop(self) -> None:
        self._watch.stop()

    async def wait_idle(self) -> None:
        await self._watch.wait_idle()

    async def check(self) -> Optional[List[Path]]:
        """Run one check and publish its result.

        Returns:
            The files to watch next, or None when no state is available
        """
        state = await self._query()
        if state is None:
            logger.debug("no state, hiding")
            if not self._installing:
                self._emit(CheckResult(status=CheckStatus.UNKNOWN))
            return None

        self._root = Path(state.root)
        self._state_contents_file = Path(state.state_contents_file)

        result = summarize(state.current, state.saved)
        logger.debug("changed files: %s", [c.label for c in result.changes])
        if not self._installing:
            self._emit(result)
        return [Path(f) for f in state.files]

    def _emit(self, result: CheckResult) -> None:
        self.last_result = result
        self._publish(result)

    def request_install(self) -> str:
        """Mark an install as running and return the command the caller should run.

        Results are held back until install_finished() so a half-finished
        install is not reported as stale.
        """
        self._installing = True
        self._emit(CheckResult(status=CheckStatus.INSTALLING))
        return self._settings.install_command

    def install_finished(self) -> None:
        """Re-check once the install command has exited."""
        self._installing = False
        self._watch.request_check()

    def show_diff(self, file: str) -> DependencyDiff:
        """Saved vs current normalized content of one changed input file."""
        root = self._root or self._settings.root
        contents_file = self._state_contents_file or self._settings.state_contents_file
        return show_diff(root, contents_file, file)
