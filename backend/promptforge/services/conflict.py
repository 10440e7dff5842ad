"""Advisory detection of concurrent prompt edits.

Storage is last-write-wins. The detector only makes the editor aware that
the prompt changed underneath it; it never merges content and never clears
a conflict on its own.
"""
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

from promptforge.errors import EditConflictError
from promptforge.services.clock import as_utc

logger = logging.getLogger(__name__)

CLEAN = "CLEAN"
CONFLICTED = "CONFLICTED"

UpdatedAtFetcher = Callable[[], Awaitable[Optional[datetime]]]


class ConflictDetector:
    """Two-state machine (CLEAN / CONFLICTED) around a captured baseline.

    Args:
        fetch_updated_at: async callable returning the prompt's live
            ``updated_at`` (or None if the prompt is gone).
        baseline: the ``updated_at`` captured when the editor loaded.
    """

    def __init__(self, fetch_updated_at: Optional[UpdatedAtFetcher], baseline: Optional[datetime]):
        self._fetch_updated_at = fetch_updated_at
        self.baseline = as_utc(baseline)
        self.state = CLEAN
        self.server_updated_at: Optional[datetime] = None

    @property
    def has_conflict(self) -> bool:
        return self.state == CONFLICTED

    def observe(self, live_updated_at: Optional[datetime], has_unsaved_changes: bool) -> str:
        """Feed a freshly read ``updated_at``. Returns the resulting state."""
        live = as_utc(live_updated_at)
        if self.state == CONFLICTED:
            # Only an explicit reload leaves CONFLICTED.
            if live is not None and (self.server_updated_at is None or live > self.server_updated_at):
                self.server_updated_at = live
            return self.state
        if (
            has_unsaved_changes
            and live is not None
            and self.baseline is not None
            and live > self.baseline
        ):
            self.state = CONFLICTED
            self.server_updated_at = live
            logger.info("Edit conflict detected: baseline=%s server=%s", self.baseline, live)
        return self.state

    async def refresh(self, has_unsaved_changes: bool) -> str:
        """Re-read the live timestamp through the injected fetcher."""
        if self._fetch_updated_at is None:
            return self.state
        live = await self._fetch_updated_at()
        return self.observe(live, has_unsaved_changes)

    def guard_save(self, force: bool = False) -> None:
        """Block a save while CONFLICTED unless the user chose to overwrite."""
        if self.state != CONFLICTED:
            return
        if force:
            logger.warning(
                "Saving over a newer server copy (baseline=%s server=%s)",
                self.baseline, self.server_updated_at,
            )
            return
        raise EditConflictError(self.server_updated_at)

    def reload(self, new_baseline: Optional[datetime]) -> None:
        """Adopt the server copy: capture a new baseline and return to CLEAN."""
        self.baseline = as_utc(new_baseline)
        self.state = CLEAN
        self.server_updated_at = None
