"""TranscribeAudioUseCase — orchestrates the chunked transcription pipeline.

Accepts all ports via dependency injection. Each call owns one
PipelineRun; every temp file it creates is reaped before returning,
whether the run succeeded or aborted.
"""

import os
import shutil
import logging
from dataclasses import dataclass, field
from typing import BinaryIO

from domain import chunking
from domain.assembly import assemble, failed_indices
from domain.errors import PipelineError
from domain.models import (
    DEFAULT_OVERLAP_MS, DEFAULT_WINDOW_MS,
    OutputSpec, TranscriptionOptions, TranscriptionOutcome, TranscriptResult,
)
from domain.run import PipelineRun, RunState
from ports.audio import MediaProberPort, MediaTranscoderPort
from ports.progress import ProgressPort
from ports.transcription import TranscriptionPort
from use_cases.dispatch import TranscriptionDispatcher
from use_cases.materialize import SegmentMaterializer
from use_cases.worker_pool import DEFAULT_TRANSCRIBE_WORKERS, WorkerPool, cpu_worker_count

logger = logging.getLogger(__name__)


@dataclass
class TranscribeRequest:
    """One uploaded file: a readable byte stream plus the client's filename."""
    source: BinaryIO
    filename: str


@dataclass
class PipelineSettings:
    temp_dir: str
    options: TranscriptionOptions
    window_ms: float = DEFAULT_WINDOW_MS
    overlap_ms: float = DEFAULT_OVERLAP_MS
    materialize_pool: WorkerPool = field(
        default_factory=lambda: WorkerPool(cpu_worker_count(), name="materialize")
    )
    transcribe_pool: WorkerPool = field(
        default_factory=lambda: WorkerPool(DEFAULT_TRANSCRIBE_WORKERS, name="transcribe")
    )
    output_spec: OutputSpec = field(default_factory=OutputSpec)


def _safe_filename(filename: str) -> str:
    name = os.path.basename((filename or "").replace("\\", "/")).strip()
    return name or "upload"


class TranscribeAudioUseCase:
    def __init__(
        self,
        transcoder: MediaTranscoderPort,
        prober: MediaProberPort,
        transcription: TranscriptionPort,
        progress: ProgressPort,
        settings: PipelineSettings,
    ):
        # Reject bad chunking parameters before any request touches the disk.
        chunking.validate_window(settings.window_ms, settings.overlap_ms)
        self._transcoder = transcoder
        self._prober = prober
        self._progress = progress
        self._settings = settings
        self._materializer = SegmentMaterializer(transcoder, settings.materialize_pool, progress)
        self._dispatcher = TranscriptionDispatcher(
            transcription, settings.options, settings.transcribe_pool, progress
        )

    def execute(self, req: TranscribeRequest) -> TranscriptResult:
        run = PipelineRun(self._settings.temp_dir)
        try:
            return self._execute(run, req)
        except PipelineError as e:
            logger.error(f"[{run.run_id}] pipeline aborted in state {run.state.value}: {e}")
            raise
        finally:
            run.reap()
            self._progress.report(run.run_id, RunState.REAPED.value)

    def _execute(self, run: PipelineRun, req: TranscribeRequest) -> TranscriptResult:
        settings = self._settings

        # 1. Persist the upload
        raw_path = run.allocate_unique(f"-{_safe_filename(req.filename)}")
        with open(raw_path, "wb") as out:
            shutil.copyfileobj(req.source, out)

        # 2. Preprocess to mono 16kHz flac
        self._progress.report(run.run_id, "preprocessing")
        preprocessed_path = run.allocate_unique("-preprocessed.flac")
        self._transcoder.transcode(raw_path, preprocessed_path, settings.output_spec)

        # 3. Plan
        duration_ms = self._prober.probe_duration_ms(preprocessed_path)
        chunk_plan = chunking.plan(duration_ms, settings.window_ms, settings.overlap_ms)
        run.advance(RunState.PLANNED)
        run.start_outcomes(chunk_plan.chunk_count)
        self._progress.report(
            run.run_id, RunState.PLANNED.value,
            detail=f"{chunk_plan.chunk_count} chunks over {duration_ms / 1000:.2f}s",
        )

        # 4. Materialize segments. A trailing zero-length window (duration an exact
        # multiple of the step) holds no audio: it counts as an empty success.
        descriptors = chunking.descriptors(chunk_plan)
        if len(descriptors) > 1:
            for empty in [d for d in descriptors if d.end_ms <= d.start_ms]:
                logger.debug(f"[{run.run_id}] chunk {empty.index} is zero-length, skipping")
                run.record_outcome(TranscriptionOutcome.success(empty.index, ""))
            descriptors = [d for d in descriptors if d.end_ms > d.start_ms]
        report = self._materializer.materialize_all(run, preprocessed_path, descriptors)

        # 5. Transcribe
        outcomes = self._dispatcher.dispatch(run, report.artifacts)

        # 6. Assemble in index order
        text = assemble(outcomes, chunk_plan.chunk_count)
        run.advance(RunState.ASSEMBLED)
        failed = failed_indices(outcomes, chunk_plan.chunk_count)
        self._progress.report(
            run.run_id, RunState.ASSEMBLED.value,
            chunk_plan.chunk_count - len(failed), chunk_plan.chunk_count,
        )
        if failed:
            logger.warning(f"[{run.run_id}] transcript is missing chunks {failed}")

        return TranscriptResult(
            text=text,
            chunk_count=chunk_plan.chunk_count,
            duration_ms=duration_ms,
            failed_indices=failed,
        )
