"""OpenAICompatTranscriptionAdapter — transcription over an OpenAI-compatible HTTP API.

Targets Groq's ``/openai/v1/audio/transcriptions`` by default; any service
speaking the same multipart protocol with bearer auth works.

``options.timeout`` is a deadline for the whole call. requests' own
timeout only bounds each socket wait, so the body is streamed and read
against the deadline.
"""

import json
import logging
import os
import time

import requests
import urllib3

from domain.errors import TranscriptionError, TranscriptionHTTPError, TranscriptionTimeout
from domain.models import TranscriptionOptions
from ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.groq.com/openai/v1/audio/transcriptions"
DEFAULT_MODEL = "distil-whisper-large-v3-en"
BODY_CHUNK_BYTES = 64 * 1024


class OpenAICompatTranscriptionAdapter(TranscriptionPort):
    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        model: str = DEFAULT_MODEL,
    ):
        if not api_key:
            logger.warning("No transcription API key configured; requests will be rejected")
        self._api_key = api_key
        self._api_url = api_url
        self._model = model

    def model_name(self) -> str:
        return self._model

    def transcribe(self, audio_path: str, options: TranscriptionOptions) -> str:
        deadline = time.monotonic() + options.timeout
        data = {
            "model": options.model or self._model,
            "temperature": f"{options.temperature:g}",
            "response_format": options.response_format,
            "language": options.language,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            with open(audio_path, "rb") as f:
                files = {"file": (os.path.basename(audio_path), f)}
                response = requests.post(
                    self._api_url,
                    headers=headers,
                    data=data,
                    files=files,
                    timeout=options.timeout,
                    stream=True,
                )
        except requests.exceptions.Timeout as e:
            raise TranscriptionTimeout(f"request timed out after {options.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise TranscriptionError(f"request failed: {e}") from e
        except OSError as e:
            raise TranscriptionError(f"cannot read segment {audio_path}: {e}") from e

        try:
            body = self._read_body(response, deadline, options.timeout)
        finally:
            response.close()

        if response.status_code != 200:
            raise TranscriptionHTTPError(response.status_code, body.decode("utf-8", errors="replace"))

        try:
            payload = json.loads(body)
        except ValueError as e:
            raise TranscriptionError(f"malformed response body: {e}") from e

        text = payload.get("text") if isinstance(payload, dict) else None
        if not isinstance(text, str):
            raise TranscriptionError("malformed response: missing 'text'")
        return text

    @staticmethod
    def _read_body(response: requests.Response, deadline: float, timeout: float) -> bytes:
        """Read the streamed body, giving up once the call deadline passes."""
        sock = getattr(response.raw.connection, "sock", None)
        parts: list[bytes] = []
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TranscriptionTimeout(f"response not received within {timeout}s")
            if sock is not None:
                # each recv may wait at most the time left on the deadline
                sock.settimeout(remaining)
            try:
                chunk = response.raw.read1(BODY_CHUNK_BYTES, decode_content=True)
            except (urllib3.exceptions.ReadTimeoutError, TimeoutError) as e:
                raise TranscriptionTimeout(f"response not received within {timeout}s") from e
            except (urllib3.exceptions.HTTPError, OSError) as e:
                raise TranscriptionError(f"failed reading response: {e}") from e
            if not chunk:
                return b"".join(parts)
            parts.append(chunk)
