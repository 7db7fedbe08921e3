"""TranscriptionPort — abstract interface for speech-to-text services."""

from abc import ABC, abstractmethod

from domain.models import TranscriptionOptions


class TranscriptionPort(ABC):
    @abstractmethod
    def transcribe(self, audio_path: str, options: TranscriptionOptions) -> str:
        """Transcribe one audio file and return its text.

        Raises TranscriptionHTTPError, TranscriptionTimeout or
        TranscriptionError on failure.
        """

    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier sent to the service."""
