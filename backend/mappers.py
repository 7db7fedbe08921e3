"""Domain <-> DTO mappers.

Converts pipeline results and errors into the API response schema.
"""

from domain.errors import (
    InvalidConfiguration, MaterializationFailed, PipelineError, ProbeError, ProcessError,
)
from domain.models import TranscriptResult
from models import ErrorResponse, TranscriptionResponse


def result_to_response(result: TranscriptResult) -> TranscriptionResponse:
    return TranscriptionResponse(transcription=result.text)


def error_to_response(error: PipelineError) -> tuple[int, ErrorResponse]:
    """Map a fatal pipeline error to (status_code, ErrorResponse)."""
    if isinstance(error, InvalidConfiguration):
        return 422, ErrorResponse(error=f"Invalid configuration: {error}")
    if isinstance(error, ProcessError):
        return 500, ErrorResponse(error=f"Failed to preprocess audio: {error}")
    if isinstance(error, ProbeError):
        return 500, ErrorResponse(error=f"Failed to analyze audio: {error}")
    if isinstance(error, MaterializationFailed):
        return 500, ErrorResponse(error=f"Failed to chunk audio: {error}")
    return 500, ErrorResponse(error=f"Transcription failed: {error}")
