from typing import Any, Dict
from pydantic import BaseModel


class TranscriptionResponse(BaseModel):
    """Successful transcription of one uploaded file."""
    transcription: str


class ErrorResponse(BaseModel):
    """Any failure visible to the caller."""
    error: str


class HealthResponse(BaseModel):
    status: str = "ok"
    config: Dict[str, Any] = {}
