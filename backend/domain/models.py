"""Framework-agnostic domain models for the chunked transcription pipeline.

The pydantic DTOs in models.py are the API response schema; mappers.py
converts at the boundary.
"""

from dataclasses import dataclass, field
from typing import Optional

DEFAULT_WINDOW_MS = 120_000.0
DEFAULT_OVERLAP_MS = 1_000.0


@dataclass(frozen=True)
class ChunkPlan:
    """How a source of a given duration is split into overlapping windows."""
    total_duration_ms: float
    window_ms: float = DEFAULT_WINDOW_MS
    overlap_ms: float = DEFAULT_OVERLAP_MS
    chunk_count: int = 1

    @property
    def step_ms(self) -> float:
        return self.window_ms - self.overlap_ms


@dataclass(frozen=True)
class ChunkDescriptor:
    """One time window of the source. ``index`` defines final ordering."""
    index: int
    start_ms: float
    end_ms: float

    @property
    def start_seconds(self) -> float:
        return self.start_ms / 1000

    @property
    def duration_seconds(self) -> float:
        return (self.end_ms - self.start_ms) / 1000


@dataclass(frozen=True)
class SegmentArtifact:
    """A materialized segment file bound to its chunk index."""
    index: int
    path: str


@dataclass(frozen=True)
class TranscriptionOutcome:
    """Result of transcribing one segment.

    ``text`` is None when the segment failed; a successful call may still
    return an empty string.
    """
    index: int
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.text is not None

    @classmethod
    def success(cls, index: int, text: str) -> "TranscriptionOutcome":
        return cls(index=index, text=text)

    @classmethod
    def failure(cls, index: int, error: str) -> "TranscriptionOutcome":
        return cls(index=index, text=None, error=error)


@dataclass(frozen=True)
class OutputSpec:
    """Target format for the preprocessing transcode."""
    sample_rate: int = 16000
    channels: int = 1
    codec: str = "flac"


@dataclass(frozen=True)
class TranscriptionOptions:
    """Fixed per-request parameters sent to the transcription service."""
    model: str
    language: str = "en"
    temperature: float = 0.0
    response_format: str = "verbose_json"
    timeout: float = 30.0


@dataclass
class MaterializationReport:
    """Artifacts that were produced plus per-index failure messages."""
    artifacts: list[SegmentArtifact] = field(default_factory=list)
    failures: dict[int, str] = field(default_factory=dict)

    @property
    def partial(self) -> bool:
        return bool(self.failures) and bool(self.artifacts)


@dataclass
class TranscriptResult:
    """Final output of one pipeline run."""
    text: str
    chunk_count: int
    duration_ms: float
    failed_indices: list[int] = field(default_factory=list)
