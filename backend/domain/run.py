"""PipelineRun — per-request aggregate owning temp artifacts and outcomes.

A run is the only holder of mutable pipeline state. Artifact paths are
registered the moment they are allocated, and ``reap()`` removes all of
them exactly once, whatever path the pipeline took to get there. The lock
guards the registry and the outcome table and is never held across a
blocking call.
"""

import enum
import logging
import os
import threading
import uuid
from typing import Optional

from domain.errors import CleanupError, PipelineError
from domain.models import TranscriptionOutcome

logger = logging.getLogger(__name__)


class RunState(str, enum.Enum):
    CREATED = "created"
    PLANNED = "planned"
    MATERIALIZING = "materializing"
    TRANSCRIBING = "transcribing"
    ASSEMBLED = "assembled"
    REAPED = "reaped"


_ORDER = [
    RunState.CREATED,
    RunState.PLANNED,
    RunState.MATERIALIZING,
    RunState.TRANSCRIBING,
    RunState.ASSEMBLED,
    RunState.REAPED,
]


class PipelineRun:
    def __init__(self, temp_dir: str, run_id: Optional[str] = None):
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self.temp_dir = temp_dir
        self.state = RunState.CREATED
        self.cleanup_errors: list[CleanupError] = []
        self._lock = threading.Lock()
        self._artifacts: list[str] = []
        self._outcomes: dict[int, TranscriptionOutcome] = {}
        self._chunk_count = 0

    def __enter__(self) -> "PipelineRun":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.reap()

    # -- lifecycle -----------------------------------------------------

    def advance(self, state: RunState) -> None:
        if self.state == RunState.REAPED:
            raise PipelineError(f"run {self.run_id} already reaped")
        if _ORDER.index(state) <= _ORDER.index(self.state):
            raise PipelineError(f"run {self.run_id}: cannot move from {self.state.value} to {state.value}")
        self.state = state

    def start_outcomes(self, chunk_count: int) -> None:
        """Size the outcome table: one slot per chunk."""
        with self._lock:
            self._chunk_count = chunk_count
            self._outcomes = {}

    # -- artifact registry ---------------------------------------------

    def allocate(self, name: str) -> str:
        """Return a path inside the run's temp dir, registered for cleanup."""
        path = os.path.join(self.temp_dir, name)
        self.register(path)
        return path

    def allocate_unique(self, suffix: str) -> str:
        return self.allocate(f"{uuid.uuid4()}{suffix}")

    def register(self, path: str) -> None:
        with self._lock:
            if self.state == RunState.REAPED:
                raise PipelineError(f"run {self.run_id} already reaped")
            self._artifacts.append(path)

    @property
    def artifacts(self) -> list[str]:
        with self._lock:
            return list(self._artifacts)

    # -- outcome table ---------------------------------------------------

    def record_outcome(self, outcome: TranscriptionOutcome) -> None:
        with self._lock:
            if not 0 <= outcome.index < self._chunk_count:
                raise PipelineError(
                    f"outcome index {outcome.index} outside table of {self._chunk_count}"
                )
            if outcome.index in self._outcomes:
                raise PipelineError(f"outcome for chunk {outcome.index} already recorded")
            self._outcomes[outcome.index] = outcome

    @property
    def outcomes(self) -> dict[int, TranscriptionOutcome]:
        with self._lock:
            return dict(self._outcomes)

    @property
    def chunk_count(self) -> int:
        return self._chunk_count

    # -- reaper ----------------------------------------------------------

    def reap(self) -> None:
        """Delete every registered artifact. Idempotent; never raises."""
        with self._lock:
            if self.state == RunState.REAPED:
                return
            paths = self._artifacts
            self._artifacts = []
            self._outcomes = {}
            self.state = RunState.REAPED

        removed = 0
        for path in paths:
            try:
                os.unlink(path)
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                error = CleanupError(f"Error deleting file {path}: {e}")
                self.cleanup_errors.append(error)
                logger.warning(str(error))
        logger.debug(f"[{self.run_id}] reaped {removed}/{len(paths)} artifacts")
