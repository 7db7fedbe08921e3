"""SegmentMaterializer — cuts each planned window into its own audio file."""

import logging
import uuid
from typing import Optional, Sequence

from domain.errors import MaterializationFailed
from domain.models import ChunkDescriptor, MaterializationReport, SegmentArtifact
from domain.run import PipelineRun, RunState
from ports.audio import MediaTranscoderPort
from ports.progress import ProgressPort
from use_cases.worker_pool import WorkerPool

logger = logging.getLogger(__name__)

SEGMENT_SUFFIX = ".flac"


class SegmentMaterializer:
    def __init__(
        self,
        transcoder: MediaTranscoderPort,
        pool: WorkerPool,
        progress: Optional[ProgressPort] = None,
    ):
        self._transcoder = transcoder
        self._pool = pool
        self._progress = progress

    def materialize(self, source_path: str, descriptor: ChunkDescriptor, output_path: str) -> SegmentArtifact:
        self._transcoder.extract_segment(
            source_path,
            descriptor.start_seconds,
            descriptor.duration_seconds,
            output_path,
        )
        return SegmentArtifact(index=descriptor.index, path=output_path)

    def materialize_all(
        self,
        run: PipelineRun,
        source_path: str,
        descriptors: Sequence[ChunkDescriptor],
    ) -> MaterializationReport:
        """Materialize every descriptor; collect failures instead of aborting.

        Raises MaterializationFailed only when no descriptor succeeded.
        """
        run.advance(RunState.MATERIALIZING)
        chunk_id = uuid.uuid4()
        # Paths are registered before ffmpeg runs so partial output is always reaped.
        jobs = [
            (descriptor, run.allocate(f"{chunk_id}_{descriptor.index + 1}{SEGMENT_SUFFIX}"))
            for descriptor in descriptors
        ]

        report = MaterializationReport()
        done = 0
        for (descriptor, output_path), future in self._pool.imap_unordered(
            lambda job: self.materialize(source_path, *job), jobs
        ):
            done += 1
            error = future.exception()
            if error is not None:
                logger.warning(f"[{run.run_id}] Error creating chunk {descriptor.index}: {error}")
                report.failures[descriptor.index] = str(error)
            else:
                report.artifacts.append(future.result())
            if self._progress:
                self._progress.report(run.run_id, RunState.MATERIALIZING.value, done, len(jobs))

        report.artifacts.sort(key=lambda artifact: artifact.index)
        if not report.artifacts:
            raise MaterializationFailed(report.failures)
        if report.failures:
            logger.warning(
                f"[{run.run_id}] {len(report.failures)}/{len(jobs)} chunks failed to materialize: "
                f"{sorted(report.failures)}"
            )
        return report
