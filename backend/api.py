"""HTTP surface: one upload in, one transcript (or error) out."""

import logging
from typing import Optional

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Config, create_use_case, get_config
from domain.errors import PipelineError
from mappers import error_to_response, result_to_response
from models import ErrorResponse, HealthResponse, TranscriptionResponse
from use_cases.transcribe import TranscribeRequest

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def create_app(cfg: Optional[Config] = None, use_case=None) -> FastAPI:
    cfg = cfg or get_config()
    app = FastAPI(title="Chunked Transcription Service")
    app.state.config = cfg
    app.state.use_case = use_case

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Authorization"],
    )

    def _get_use_case(request: Request):
        if request.app.state.use_case is None:
            request.app.state.use_case = create_use_case(request.app.state.config)
        return request.app.state.use_case

    @app.get("/health", response_model=HealthResponse)
    def health(request: Request):
        return HealthResponse(config=request.app.state.config.as_dict())

    # Sync handler: FastAPI runs it in its threadpool, the pipeline blocks on
    # ffmpeg and HTTP calls.
    @app.post(
        "/api/transcribe",
        response_model=TranscriptionResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    def transcribe(request: Request, file: Optional[UploadFile] = File(None)):
        if file is None or not file.filename:
            return _error(400, "No file provided")

        try:
            use_case = _get_use_case(request)
        except PipelineError as e:
            status_code, body = error_to_response(e)
            return JSONResponse(status_code=status_code, content=body.model_dump())

        try:
            result = use_case.execute(TranscribeRequest(source=file.file, filename=file.filename))
        except PipelineError as e:
            status_code, body = error_to_response(e)
            return JSONResponse(status_code=status_code, content=body.model_dump())
        except OSError as e:
            logger.error(f"Failed to save uploaded file: {e}")
            return _error(500, "Failed to save uploaded file")
        except Exception as e:  # noqa: BLE001 - callers only ever get {"error": ...}
            logger.exception(f"Unexpected failure transcribing {file.filename}")
            return _error(500, f"Transcription failed: {e}")
        finally:
            file.file.close()

        logger.info(
            f"Transcribed {file.filename}: {result.chunk_count} chunks, "
            f"{len(result.failed_indices)} failed, {len(result.text)} chars"
        )
        return result_to_response(result)

    return app
