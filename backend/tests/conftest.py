from __future__ import annotations

import shutil
import threading
import time
from pathlib import Path

import pytest

from domain.errors import ProcessError, TranscriptionHTTPError
from domain.models import OutputSpec, TranscriptionOptions
from ports.audio import MediaProberPort, MediaTranscoderPort
from ports.progress import ProgressPort
from ports.transcription import TranscriptionPort


class FakeMedia(MediaTranscoderPort, MediaProberPort):
    """Writes segment files whose content names the window they cover."""

    def __init__(self, duration_ms: float = 5000.0, fail_segments: set[int] | None = None,
                 fail_transcode: bool = False, step_s: float = 119.0):
        self.duration_ms = duration_ms
        self.fail_segments = fail_segments or set()
        self.fail_transcode = fail_transcode
        self.step_s = step_s
        self.segment_calls: list[tuple[float, float]] = []
        self._lock = threading.Lock()

    def transcode(self, input_path: str, output_path: str, spec: OutputSpec) -> str:
        if self.fail_transcode:
            raise ProcessError("Failed to convert audio: ffmpeg exited with 1", returncode=1)
        shutil.copyfile(input_path, output_path)
        return output_path

    def extract_segment(self, input_path: str, start_seconds: float, duration_seconds: float,
                        output_path: str) -> str:
        with self._lock:
            self.segment_calls.append((start_seconds, duration_seconds))
        index = round(start_seconds / self.step_s)
        if index in self.fail_segments:
            raise ProcessError(f"Failed to extract segment: chunk {index}", returncode=1)
        Path(output_path).write_text(str(index))
        return output_path

    def probe_duration_ms(self, input_path: str) -> float:
        return self.duration_ms


class FakeTranscription(TranscriptionPort):
    """Returns "<text-for-index>" where the index is read from the segment file."""

    def __init__(self, texts: dict[int, str] | None = None, fail: set[int] | None = None,
                 delays: dict[int, float] | None = None):
        self.texts = texts or {}
        self.fail = fail or set()
        self.delays = delays or {}
        self.completion_order: list[int] = []
        self.options_seen: list[TranscriptionOptions] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def transcribe(self, audio_path: str, options: TranscriptionOptions) -> str:
        index = int(Path(audio_path).read_text())
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.options_seen.append(options)
        try:
            time.sleep(self.delays.get(index, 0.0))
            if index in self.fail:
                raise TranscriptionHTTPError(429, "rate limited")
            return self.texts.get(index, f"<{index}>")
        finally:
            with self._lock:
                self.active -= 1
                self.completion_order.append(index)

    def model_name(self) -> str:
        return "fake-model"


class RecordingProgress(ProgressPort):
    def __init__(self):
        self.events: list[tuple[str, str, int, int]] = []

    def report(self, run_id, stage, completed=0, total=0, detail=None) -> None:
        self.events.append((run_id, stage, completed, total))

    @property
    def stages(self) -> list[str]:
        return [stage for _, stage, _, _ in self.events]


@pytest.fixture
def options() -> TranscriptionOptions:
    return TranscriptionOptions(model="fake-model")


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()


@pytest.fixture
def fake_media_cls():
    return FakeMedia


@pytest.fixture
def fake_transcription_cls():
    return FakeTranscription


@pytest.fixture
def run_dir(tmp_path: Path) -> Path:
    path = tmp_path / "run"
    path.mkdir()
    return path
