"""Groq / OpenAI-compatible HTTP adapter for segment transcription."""

from .transcription import OpenAICompatTranscriptionAdapter

__all__ = ["OpenAICompatTranscriptionAdapter"]
