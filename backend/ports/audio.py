"""Media ports — abstract interfaces for transcoding and probing audio."""

from abc import ABC, abstractmethod

from domain.models import OutputSpec


class MediaTranscoderPort(ABC):
    @abstractmethod
    def transcode(self, input_path: str, output_path: str, spec: OutputSpec) -> str:
        """Convert input to the given format. Returns output_path; raises ProcessError."""

    @abstractmethod
    def extract_segment(
        self,
        input_path: str,
        start_seconds: float,
        duration_seconds: float,
        output_path: str,
    ) -> str:
        """Cut [start, start+duration) into a standalone file. Raises ProcessError."""


class MediaProberPort(ABC):
    @abstractmethod
    def probe_duration_ms(self, input_path: str) -> float:
        """Return the media duration in milliseconds. Raises ProbeError."""
