"""FFmpegAudioAdapter — transcoding and segment extraction via ffmpeg, probing via ffprobe."""

import os
import json
import logging
import subprocess

from domain.errors import ProbeError, ProcessError
from domain.models import OutputSpec
from ports.audio import MediaProberPort, MediaTranscoderPort

logger = logging.getLogger(__name__)


class FFmpegAudioAdapter(MediaTranscoderPort, MediaProberPort):
    def __init__(self, ffmpeg_bin: str = "ffmpeg", ffprobe_bin: str = "ffprobe"):
        self._ffmpeg = ffmpeg_bin
        self._ffprobe = ffprobe_bin

    def transcode(self, input_path: str, output_path: str, spec: OutputSpec) -> str:
        cmd = [
            self._ffmpeg, "-y",
            "-i", input_path,
            "-ar", str(spec.sample_rate),
            "-ac", str(spec.channels),
            "-c:a", spec.codec,
            "-map", "0:a",
            output_path,
        ]
        self._run(cmd, output_path, "convert audio")
        return output_path

    def extract_segment(
        self,
        input_path: str,
        start_seconds: float,
        duration_seconds: float,
        output_path: str,
    ) -> str:
        cmd = [
            self._ffmpeg, "-y",
            "-i", input_path,
            "-ss", f"{start_seconds:f}",
            "-t", f"{duration_seconds:f}",
            output_path,
        ]
        self._run(cmd, output_path, "extract segment")
        return output_path

    def probe_duration_ms(self, input_path: str) -> float:
        cmd = [
            self._ffprobe,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "json",
            input_path,
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise ProbeError(f"Failed to run ffprobe: {e}") from e
        if result.returncode != 0:
            logger.error(f"Error probing audio: {result.stderr}")
            raise ProbeError(f"ffprobe exited with {result.returncode}: {result.stderr.strip()}")

        try:
            payload = json.loads(result.stdout)
            duration = float(payload["format"]["duration"])
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise ProbeError(f"unable to parse duration: {e}") from e

        if duration < 0:
            raise ProbeError(f"negative duration reported: {duration}")
        logger.info(f"Audio duration: {duration:.2f} seconds")
        return duration * 1000

    def _run(self, cmd: list[str], output_path: str, action: str) -> None:
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            self._discard(output_path)
            raise ProcessError(f"Failed to {action}: {e}") from e
        if result.returncode != 0:
            logger.error(f"Error running ffmpeg ({action}): {result.stderr}")
            self._discard(output_path)
            raise ProcessError(
                f"Failed to {action}: ffmpeg exited with {result.returncode}",
                returncode=result.returncode,
                stderr=result.stderr,
            )

    @staticmethod
    def _discard(path: str) -> None:
        try:
            if os.path.exists(path):
                os.unlink(path)
        except OSError as e:
            logger.warning(f"Could not remove partial output {path}: {e}")
