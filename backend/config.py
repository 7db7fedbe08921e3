import os
import logging
import tempfile
from typing import Dict, Optional, Any
from pathlib import Path

from domain.errors import InvalidConfiguration
from domain.models import DEFAULT_OVERLAP_MS, DEFAULT_WINDOW_MS, TranscriptionOptions

logger = logging.getLogger(__name__)

try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_API_URL = "https://api.groq.com/openai/v1/audio/transcriptions"
DEFAULT_MODEL = "distil-whisper-large-v3-en"
DEFAULT_TRANSCRIBE_TIMEOUT = 30.0
DEFAULT_TRANSCRIBE_WORKERS = 5
DEFAULT_CORS_ORIGINS = "http://localhost:5173"


def _getenv_int(name: str) -> Optional[int]:
    value = os.environ.get(name, "").strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError as e:
        raise InvalidConfiguration(f"{name} must be an integer, got {value!r}") from e


def _getenv_float(name: str, default: float) -> float:
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise InvalidConfiguration(f"{name} must be a number, got {value!r}") from e


class Config:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    @classmethod
    def reload(cls) -> "Config":
        cls._instance = None
        return cls()

    def _initialize(self):
        self.host = os.environ.get("HOST", DEFAULT_HOST)
        self.port = int(os.environ.get("PORT", DEFAULT_PORT))
        self.debug = os.environ.get("DEBUG", "0") == "1"
        self.temp_dir = os.environ.get("TEMP_DIR") or tempfile.gettempdir()

        self.window_ms = _getenv_float("CHUNK_WINDOW_MS", DEFAULT_WINDOW_MS)
        self.overlap_ms = _getenv_float("CHUNK_OVERLAP_MS", DEFAULT_OVERLAP_MS)
        # None means "use the detected CPU count"
        self.materialize_workers = _getenv_int("MATERIALIZE_WORKERS")
        transcribe_workers = _getenv_int("TRANSCRIBE_WORKERS")
        self.transcribe_workers = DEFAULT_TRANSCRIBE_WORKERS if transcribe_workers is None else transcribe_workers
        self.transcribe_timeout = _getenv_float("TRANSCRIBE_TIMEOUT", DEFAULT_TRANSCRIBE_TIMEOUT)

        self.api_url = os.environ.get("TRANSCRIPTION_API_URL", DEFAULT_API_URL)
        self.api_key = os.environ.get("TRANSCRIPTION_API_KEY") or os.environ.get("GROQ_API_KEY", "")
        self.model = os.environ.get("TRANSCRIPTION_MODEL", DEFAULT_MODEL)

        origins = os.environ.get("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
        self.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]

        self.ffmpeg_bin = os.environ.get("FFMPEG_BIN", "ffmpeg")
        self.ffprobe_bin = os.environ.get("FFPROBE_BIN", "ffprobe")
        Path(self.temp_dir).mkdir(parents=True, exist_ok=True)

    def transcription_options(self) -> TranscriptionOptions:
        return TranscriptionOptions(model=self.model, timeout=self.transcribe_timeout)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "window_ms": self.window_ms,
            "overlap_ms": self.overlap_ms,
            "materialize_workers": self.materialize_workers,
            "transcribe_workers": self.transcribe_workers,
            "transcribe_timeout": self.transcribe_timeout,
            "api_url": self.api_url,
            "model": self.model,
            "has_api_key": bool(self.api_key),
        }


def get_config() -> Config:
    return Config()


def create_audio_adapter(cfg: Config):
    """Create the media adapter (ffmpeg transcoder + ffprobe prober)."""
    from adapters.ffmpeg.audio import FFmpegAudioAdapter
    return FFmpegAudioAdapter(ffmpeg_bin=cfg.ffmpeg_bin, ffprobe_bin=cfg.ffprobe_bin)


def create_transcription_adapter(cfg: Config):
    from adapters.groq import OpenAICompatTranscriptionAdapter
    return OpenAICompatTranscriptionAdapter(api_key=cfg.api_key, api_url=cfg.api_url, model=cfg.model)


def create_progress_adapter():
    from adapters.local.log_progress import LogProgressAdapter
    return LogProgressAdapter()


def create_use_case(cfg: Config):
    """Wire ports, pools and settings into a TranscribeAudioUseCase.

    Uses lazy imports so importing config stays cheap.
    """
    from use_cases.transcribe import PipelineSettings, TranscribeAudioUseCase
    from use_cases.worker_pool import WorkerPool, cpu_worker_count

    audio = create_audio_adapter(cfg)
    settings = PipelineSettings(
        temp_dir=cfg.temp_dir,
        options=cfg.transcription_options(),
        window_ms=cfg.window_ms,
        overlap_ms=cfg.overlap_ms,
        materialize_pool=WorkerPool(cpu_worker_count(cfg.materialize_workers), name="materialize"),
        transcribe_pool=WorkerPool(cfg.transcribe_workers, name="transcribe"),
    )
    use_case = TranscribeAudioUseCase(
        transcoder=audio,
        prober=audio,
        transcription=create_transcription_adapter(cfg),
        progress=create_progress_adapter(),
        settings=settings,
    )
    logger.info(
        f"Pipeline: window={cfg.window_ms}ms overlap={cfg.overlap_ms}ms "
        f"materialize_workers={settings.materialize_pool.max_workers} "
        f"transcribe_workers={settings.transcribe_pool.max_workers}"
    )
    return use_case
