"""Error taxonomy for the transcription pipeline.

Fatal errors abort a run; per-segment errors are recorded on the run and
the pipeline continues.
"""

from typing import Optional


class PipelineError(RuntimeError):
    """Base class for every error raised by the pipeline."""


class InvalidConfiguration(PipelineError):
    """Chunking or pool parameters are malformed. Raised before any I/O."""


class ProbeError(PipelineError):
    """Source duration could not be determined."""


class ProcessError(PipelineError):
    """An external media process (ffmpeg) failed."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class MaterializationFailed(PipelineError):
    """Every segment failed to materialize; nothing left to transcribe."""

    def __init__(self, failures: dict[int, str]):
        detail = "; ".join(f"chunk {i}: {msg}" for i, msg in sorted(failures.items()))
        super().__init__(f"all {len(failures)} chunks failed: {detail}")
        self.failures = failures


class TranscriptionError(PipelineError):
    """A transcription call failed or returned a malformed response."""


class TranscriptionHTTPError(TranscriptionError):
    def __init__(self, status: int, body: str):
        super().__init__(f"API returned non-200 status: {status}, body: {body}")
        self.status = status
        self.body = body


class TranscriptionTimeout(TranscriptionError):
    pass


class CleanupError(PipelineError):
    """A temporary artifact could not be deleted. Logged, never raised to callers."""
