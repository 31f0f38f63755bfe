"""
Pipeline orchestration: URL in, ordered progress events out.

One run acquires a transcript (existing captions first, unless audio is
forced, otherwise yt-dlp audio plus whisper), summarizes it, persists
both artifacts and ends with exactly one terminal event. Any failure
after validation becomes a single ``error`` event carrying a snapshot of
which stages completed.
"""

import traceback
from pathlib import Path
from typing import Dict, Iterator, Optional

from ytdigest.config import config
from ytdigest.core.artifacts import ArtifactStore
from ytdigest.core.captions import CaptionFetcher
from ytdigest.core.summarizer import TranscriptSummarizer
from ytdigest.core.transcriber import AudioTranscriber
from ytdigest.core.youtube_downloader import AudioDownloader
from ytdigest.models.schemas import (
    EventStage,
    EventStatus,
    PartialProgress,
    PipelineRequest,
    ProgressEvent,
    Stage,
    StageStatus,
    SummaryArtifact,
    TranscriptArtifact,
    TranscriptSource,
)
from ytdigest.utils.error_handling import EmptyResultError, ValidationError, error_payload, log_diagnostic_info
from ytdigest.utils.helpers import truncate_text
from ytdigest.utils.logger import logging


class StageTracker:
    """
    Status of the download, transcribe and summarize stages.

    Completed, skipped and failed are terminal: a stage in one of them
    never moves again.
    """

    def __init__(self):
        self._statuses: Dict[Stage, StageStatus] = {stage: StageStatus.NOT_STARTED for stage in Stage}

    def status(self, stage: Stage) -> StageStatus:
        return self._statuses[stage]

    def _move(self, stage: Stage, status: StageStatus):
        current = self._statuses[stage]
        if current.is_terminal:
            raise ValueError(f"Stage {stage.value} is already {current.value}; cannot move to {status.value}")
        self._statuses[stage] = status

    def start(self, stage: Stage):
        self._move(stage, StageStatus.IN_PROGRESS)

    def complete(self, stage: Stage):
        self._move(stage, StageStatus.COMPLETED)

    def skip_acquisition(self):
        """Download and transcription are skipped together, never one alone."""
        for stage in (Stage.DOWNLOAD, Stage.TRANSCRIBE):
            if self._statuses[stage].is_terminal:
                raise ValueError(f"Stage {stage.value} is already {self._statuses[stage].value}")
        self._statuses[Stage.DOWNLOAD] = StageStatus.SKIPPED
        self._statuses[Stage.TRANSCRIBE] = StageStatus.SKIPPED

    def fail_running(self):
        """Mark whichever stage is in progress as failed."""
        for stage, status in self._statuses.items():
            if status == StageStatus.IN_PROGRESS:
                self._statuses[stage] = StageStatus.FAILED

    def snapshot(self) -> PartialProgress:
        done = {stage: status == StageStatus.COMPLETED for stage, status in self._statuses.items()}
        return PartialProgress(
            audioDownloaded=done[Stage.DOWNLOAD],
            transcribed=done[Stage.TRANSCRIBE],
            summarized=done[Stage.SUMMARIZE],
        )


class PipelineRun:
    """Mutable state of one request, owned by the orchestrator for its lifetime."""

    def __init__(self, request: PipelineRequest, video_id: str):
        self.request = request
        self.video_id = video_id
        self.tracker = StageTracker()
        self.audio_path: Optional[Path] = None
        self.transcript: Optional[TranscriptArtifact] = None
        self.summary: Optional[SummaryArtifact] = None

    @property
    def used_caption(self) -> bool:
        return self.transcript is not None and self.transcript.source == TranscriptSource.EXISTING_CAPTION


def event(stage: EventStage, status: EventStatus, message: Optional[str] = None, **fields) -> ProgressEvent:
    return ProgressEvent(stage=stage, status=status, message=message, **fields)


class PipelineOrchestrator:
    """Sequences caption fetch, audio download, transcription and summarization."""

    def __init__(
        self,
        caption_fetcher: Optional[CaptionFetcher] = None,
        downloader: Optional[AudioDownloader] = None,
        transcriber: Optional[AudioTranscriber] = None,
        summarizer: Optional[TranscriptSummarizer] = None,
        store: Optional[ArtifactStore] = None,
        preview_length: Optional[int] = None,
    ):
        self.caption_fetcher = caption_fetcher or CaptionFetcher()
        self.downloader = downloader or AudioDownloader()
        self.transcriber = transcriber or AudioTranscriber()
        self.summarizer = summarizer or TranscriptSummarizer()
        self.store = store or ArtifactStore()
        self.preview_length = preview_length or config.TRANSCRIPT_PREVIEW_LENGTH

    def run(self, request: PipelineRequest) -> Iterator[ProgressEvent]:
        """
        Execute the pipeline for one request.

        Args:
            request: Accepted pipeline request

        Yields:
            Progress events, the last of which is terminal
        """
        if not request.video_url:
            yield self._error_event(ValidationError("YouTube URL is required", error="YouTube URL is required"))
            return
        video_id = request.video_id
        if not video_id:
            yield self._error_event(ValidationError(f"Could not extract a video ID from: {request.video_url}"))
            return

        logging.info(
            f"Processing video: {video_id} in language: {request.language}, "
            f"forceAudioDownload: {request.force_audio_download}"
        )
        run = PipelineRun(request, video_id)

        try:
            if not request.force_audio_download:
                yield from self._use_captions(run)
            else:
                logging.info("Force audio download enabled. Skipping caption check.")
                yield event(EventStage.DOWNLOAD, EventStatus.PROCESSING, "Downloading audio (forced)...")

            if run.transcript is None:
                yield from self._download_audio(run)
                yield from self._transcribe(run)

            yield from self._summarize(run)
        except Exception as e:
            run.tracker.fail_running()
            logging.error(f"Error processing video {video_id}: {e}")
            logging.error(traceback.format_exc())
            log_diagnostic_info({"video_id": video_id, "progress": run.tracker.snapshot().model_dump()})
            yield self._error_event(e, run.tracker.snapshot())
            return

        yield self._complete_event(run)

    def _use_captions(self, run: PipelineRun) -> Iterator[ProgressEvent]:
        yield event(EventStage.DOWNLOAD, EventStatus.PROCESSING, "Checking for YouTube transcript...")
        text = self.caption_fetcher.fetch(run.request.video_url, run.request.language)

        if not text or not text.strip():
            logging.info("No YouTube transcript available. Proceeding with audio download and transcription.")
            yield event(EventStage.DOWNLOAD, EventStatus.PROCESSING, "No YouTube transcript found. Downloading audio...")
            return

        logging.info("YouTube transcript found! Skipping download and transcription.")
        run.tracker.skip_acquisition()
        yield event(EventStage.DOWNLOAD, EventStatus.SKIPPED, "Skipped - Using YouTube transcript")
        yield event(EventStage.TRANSCRIBE, EventStatus.SKIPPED, "Skipped - Using YouTube transcript")

        run.transcript = self.store.save_transcript(text, TranscriptSource.EXISTING_CAPTION)
        # The stage stays skipped; this frame only delivers the artifact
        yield event(
            EventStage.TRANSCRIBE,
            EventStatus.COMPLETED,
            "YouTube transcript retrieved",
            transcriptFilePath=run.transcript.filename,
            usedYouTubeTranscript=True,
        )

    def _download_audio(self, run: PipelineRun) -> Iterator[ProgressEvent]:
        run.tracker.start(Stage.DOWNLOAD)
        run.audio_path = self.downloader.download_audio(run.video_id)
        run.tracker.complete(Stage.DOWNLOAD)
        yield event(EventStage.DOWNLOAD, EventStatus.COMPLETED, "Audio downloaded", audioPath=run.audio_path.name)

    def _transcribe(self, run: PipelineRun) -> Iterator[ProgressEvent]:
        run.tracker.start(Stage.TRANSCRIBE)
        yield event(EventStage.TRANSCRIBE, EventStatus.PROCESSING, "Transcribing audio...")
        text = self.transcriber.transcribe(run.audio_path, run.request.language)
        if not text or not text.strip():
            raise EmptyResultError("Speech-to-text produced no text", error="Failed to get transcript")

        run.transcript = self.store.save_transcript(text, TranscriptSource.SPEECH_TO_TEXT)
        run.tracker.complete(Stage.TRANSCRIBE)
        yield event(
            EventStage.TRANSCRIBE,
            EventStatus.COMPLETED,
            "Audio transcribed",
            transcriptFilePath=run.transcript.filename,
        )

    def _summarize(self, run: PipelineRun) -> Iterator[ProgressEvent]:
        run.tracker.start(Stage.SUMMARIZE)
        yield event(EventStage.SUMMARIZE, EventStatus.PROCESSING, "Summarizing transcript...")
        summary = self.summarizer.summarize(run.transcript.text, run.request.language)
        if not summary or not summary.strip():
            raise EmptyResultError("Summarization produced no text")

        run.summary = self.store.save_summary(
            run.request.video_url, run.request.language, run.transcript.text, summary
        )
        run.tracker.complete(Stage.SUMMARIZE)
        yield event(
            EventStage.SUMMARIZE,
            EventStatus.COMPLETED,
            "Transcript summarized",
            summaryFilePath=run.summary.filename,
            summary=summary,
        )

    def _complete_event(self, run: PipelineRun) -> ProgressEvent:
        return event(
            EventStage.COMPLETE,
            EventStatus.SUCCESS,
            success=True,
            videoId=run.video_id,
            language=run.request.language,
            usedYouTubeTranscript=run.used_caption,
            audioPath=run.audio_path.name if run.audio_path else None,
            transcript=truncate_text(run.transcript.text, self.preview_length),
            transcriptFilePath=run.transcript.filename,
            summary=run.summary.summary,
            summaryFilePath=run.summary.filename,
            savedTo=run.summary.filename,
        )

    @staticmethod
    def _error_event(exc: Exception, progress: Optional[PartialProgress] = None) -> ProgressEvent:
        snapshot = progress.model_dump() if progress is not None else None
        return event(EventStage.ERROR, EventStatus.ERROR, **error_payload(exc, snapshot))
