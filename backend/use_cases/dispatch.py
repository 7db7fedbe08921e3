"""TranscriptionDispatcher — sends segments to the transcription service in parallel.

A failed call (timeout, non-200, malformed body) is logged and recorded as
a failed outcome for that index. It never aborts sibling calls or the run.
"""

import logging
from typing import Optional, Sequence

from domain.models import SegmentArtifact, TranscriptionOptions, TranscriptionOutcome
from domain.run import PipelineRun, RunState
from ports.progress import ProgressPort
from ports.transcription import TranscriptionPort
from use_cases.worker_pool import WorkerPool

logger = logging.getLogger(__name__)


class TranscriptionDispatcher:
    def __init__(
        self,
        transcription: TranscriptionPort,
        options: TranscriptionOptions,
        pool: WorkerPool,
        progress: Optional[ProgressPort] = None,
    ):
        self._transcription = transcription
        self._options = options
        self._pool = pool
        self._progress = progress

    def dispatch(self, run: PipelineRun, artifacts: Sequence[SegmentArtifact]) -> dict[int, TranscriptionOutcome]:
        run.advance(RunState.TRANSCRIBING)

        def _transcribe(artifact: SegmentArtifact) -> None:
            run.record_outcome(self._transcribe_one(run.run_id, artifact))

        done = 0
        for artifact, future in self._pool.imap_unordered(_transcribe, artifacts):
            done += 1
            # Only a bookkeeping bug (duplicate or out-of-range index) lands here.
            future.result()
            if self._progress:
                self._progress.report(
                    run.run_id, RunState.TRANSCRIBING.value, done, len(artifacts),
                    detail=f"chunk {artifact.index + 1}",
                )
        return run.outcomes

    def _transcribe_one(self, run_id: str, artifact: SegmentArtifact) -> TranscriptionOutcome:
        try:
            text = self._transcription.transcribe(artifact.path, self._options)
        except Exception as e:  # noqa: BLE001 - every per-segment failure is non-fatal
            logger.warning(f"[{run_id}] Error transcribing chunk {artifact.index}: {e}")
            return TranscriptionOutcome.failure(artifact.index, str(e))
        return TranscriptionOutcome.success(artifact.index, text)
