import logging
from pathlib import Path
from threading import Condition, Thread
from typing import TYPE_CHECKING, Optional, Union

from .errors import StateSaveFailed

if TYPE_CHECKING:
    from .checkpoint.cache import ResumeCache

logger = logging.getLogger(__name__)


class StateWriter:
    """Background saver for resume-state snapshots.

    Holds at most one pending snapshot: a newer submission replaces an older
    one that has not started yet, and only one save runs at a time.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.saves = 0
        self.coalesced = 0
        self.last_error: Optional[StateSaveFailed] = None
        self._pending: Optional["ResumeCache"] = None
        self._busy = False
        self._closed = False
        self._cond = Condition()
        self._th = Thread(target=self._run, name="fadupes-state-writer", daemon=True)
        self._th.start()

    def _run(self):
        while True:
            with self._cond:
                while self._pending is None and not self._closed:
                    self._cond.wait()
                if self._pending is None:
                    break
                snapshot, self._pending = self._pending, None
                self._busy = True
            try:
                self._save(snapshot)
            finally:
                with self._cond:
                    self._busy = False
                    self._cond.notify_all()

    def _save(self, snapshot: "ResumeCache"):
        try:
            snapshot.serialize_to(self.path)
        except StateSaveFailed as e:
            self.last_error = e
            logger.warning("Checkpoint failed, will retry at the next one: %s", e)
        else:
            self.saves += 1
            self.last_error = None
            logger.debug("Checkpoint saved: %d entries to %s", len(snapshot), self.path)

    def submit(self, snapshot: "ResumeCache"):
        with self._cond:
            if self._closed:
                raise RuntimeError("StateWriter is closed")
            if self._pending is not None:
                self.coalesced += 1
            self._pending = snapshot
            self._cond.notify_all()

    def flush(self):
        """Block until nothing is pending or in flight."""
        with self._cond:
            while self._pending is not None or self._busy:
                self._cond.wait()

    def close(self):
        with self._cond:
            self._closed = True
            self._cond.notify_all()
        self._th.join()
