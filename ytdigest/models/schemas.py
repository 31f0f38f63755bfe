"""
Data models for the YouTube transcript digest application.
"""
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ytdigest.core.languages import normalize_language
from ytdigest.utils.helpers import extract_video_id


class Stage(str, Enum):
    """Pipeline phases tracked with their own status."""
    DOWNLOAD = "download"
    TRANSCRIBE = "transcribe"
    SUMMARIZE = "summarize"


class StageStatus(str, Enum):
    """Per-stage status. The last three are terminal."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (StageStatus.COMPLETED, StageStatus.SKIPPED, StageStatus.FAILED)


class EventStage(str, Enum):
    """The ``stage`` field of a progress frame."""
    DOWNLOAD = "download"
    TRANSCRIBE = "transcribe"
    SUMMARIZE = "summarize"
    COMPLETE = "complete"
    ERROR = "error"


class EventStatus(str, Enum):
    """The ``status`` field of a progress frame."""
    PROCESSING = "processing"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    ERROR = "error"
    SUCCESS = "success"


class TranscriptSource(str, Enum):
    EXISTING_CAPTION = "existing_caption"
    SPEECH_TO_TEXT = "speech_to_text"


class PipelineRequest(BaseModel):
    """Body of ``POST /api/summarize``; immutable once accepted."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    video_url: str = Field(default="", alias="youtubeUrl")
    language: str = "en"
    force_audio_download: bool = Field(default=False, alias="forceAudioDownload")

    @field_validator("video_url", mode="before")
    @classmethod
    def strip_url(cls, v):
        return (v or "").strip()

    @field_validator("language", mode="before")
    @classmethod
    def fallback_language(cls, v):
        return normalize_language(v)

    @property
    def video_id(self) -> Optional[str]:
        return extract_video_id(self.video_url)


class TranscriptArtifact(BaseModel):
    """Persisted transcript text and where it came from."""
    model_config = ConfigDict(frozen=True)

    text: str
    source: TranscriptSource
    filename: str


class SummaryArtifact(BaseModel):
    """Persisted summary bundle: request metadata, transcript and summary."""
    model_config = ConfigDict(frozen=True)

    video_url: str
    language: str
    timestamp: str
    transcript: str
    summary: str
    filename: str


class PartialProgress(BaseModel):
    """Which stages completed before a failure."""
    audioDownloaded: bool = False
    transcribed: bool = False
    summarized: bool = False


class ProgressEvent(BaseModel):
    """One frame on the progress channel; stage-specific fields ride as extras."""
    model_config = ConfigDict(extra="allow", use_enum_values=True)

    stage: EventStage
    status: EventStatus
    message: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation: ``{stage, status, message?, ...fields}``."""
        return self.model_dump(mode="json", exclude_none=True)


class HealthResponse(BaseModel):
    status: str = "ok"
    message: str = "Server is running"
