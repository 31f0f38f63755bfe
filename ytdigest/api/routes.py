"""
API routes for the YouTube transcript digest application.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ytdigest.core.pipeline import PipelineOrchestrator
from ytdigest.core.progress import ProgressChannel
from ytdigest.models.schemas import HealthResponse, PipelineRequest
from ytdigest.utils.logger import logging

router = APIRouter(prefix="/api", tags=["youtube"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def get_orchestrator() -> PipelineOrchestrator:
    """Fresh orchestrator per request; runs share no in-memory state."""
    return PipelineOrchestrator()


@router.post("/summarize")
def summarize_video(
    request: PipelineRequest,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """
    Summarize a YouTube video, streaming progress as server-sent events.

    - Uses the video's captions when available, unless forceAudioDownload is set
    - Otherwise downloads the audio and transcribes it locally
    - The stream ends with a single ``complete`` or ``error`` frame
    """
    logging.info(f"Summarize request: {request.video_url} ({request.language})")
    channel = ProgressChannel(orchestrator.run(request))
    return StreamingResponse(channel.frames(), media_type="text/event-stream", headers=SSE_HEADERS)


@router.get("/health", response_model=HealthResponse)
async def health():
    """Liveness probe."""
    return HealthResponse()
