"""
FastAPI application for the YouTube transcript digest.

Serves the summarize stream and health check from ``routes`` and exposes
the transcript and summary directories so the file names carried in
progress events can be fetched directly.
"""

import shutil
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from ytdigest.api.routes import router
from ytdigest.config import config
from ytdigest.utils.error_handling import PipelineError, error_payload
from ytdigest.utils.logger import logging
from ytdigest.utils.process import INSTALL_HINTS

app = FastAPI(
    title=config.APP_NAME,
    version=config.APP_VERSION,
    description="Transcribe and summarize YouTube videos with local models, streaming progress as server-sent events",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Create the artifact directories and report the configured backends."""
    config.initialize()
    logging.info(f"Transcripts directory: {config.TRANSCRIPTS_DIR}")
    logging.info(f"Summaries directory: {config.SUMMARIES_DIR}")
    logging.info(f"Ollama: {config.OLLAMA_BASE_URL} (model {config.OLLAMA_MODEL})")
    logging.info(f"Whisper model: ggml-{config.WHISPER_MODEL}.bin")
    for tool, hint in INSTALL_HINTS.items():
        if shutil.which(tool) is None:
            logging.warning(f"{tool} not found on PATH. {hint}")


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Time each request; for event streams this covers only the headers."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started
    response.headers["X-Process-Time"] = f"{elapsed:.4f}"
    logging.debug(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.3f}s")
    return response


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    logging.error(f"{request.url.path}: {exc.message}")
    return JSONResponse(status_code=400, content=error_payload(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Unhandled errors on plain endpoints become a JSON 500."""
    logging.error(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=error_payload(exc))


app.include_router(router)

app.mount("/transcripts", StaticFiles(directory=str(config.TRANSCRIPTS_DIR), check_dir=False), name="transcripts")
app.mount("/summaries", StaticFiles(directory=str(config.SUMMARIES_DIR), check_dir=False), name="summaries")


@app.get("/")
async def root():
    return {
        "name": config.APP_NAME,
        "version": config.APP_VERSION,
        "endpoints": {
            "summarize": "POST /api/summarize",
            "health": "GET /api/health",
            "transcripts": "GET /transcripts/{filename}",
            "summaries": "GET /summaries/{filename}",
        },
    }
