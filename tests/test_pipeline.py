"""
Tests for the pipeline orchestrator and stage tracking.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from ytdigest.core.artifacts import ArtifactStore
from ytdigest.core.pipeline import PipelineOrchestrator, StageTracker
from ytdigest.models.schemas import PipelineRequest, Stage, StageStatus
from ytdigest.utils.error_handling import (
    BackendUnreachableError,
    DependencyMissingError,
    StageFailureError,
)


CAPTION_TEXT = "שלום וברוכים הבאים לפרק הזה"
SPOKEN_TEXT = "Transcribed from audio " * 40
SUMMARY_TEXT = "A summary of the video that is comfortably long enough to keep."


@pytest.fixture
def store(tmp_path):
    return ArtifactStore(transcripts_dir=tmp_path / "transcripts", summaries_dir=tmp_path / "summaries")


@pytest.fixture
def leaves(tmp_path):
    audio = tmp_path / "audio-1-abc.m4a"
    caption_fetcher = MagicMock()
    caption_fetcher.fetch.return_value = CAPTION_TEXT
    downloader = MagicMock()
    downloader.download_audio.return_value = audio
    transcriber = MagicMock()
    transcriber.transcribe.return_value = SPOKEN_TEXT
    summarizer = MagicMock()
    summarizer.summarize.return_value = SUMMARY_TEXT
    return {
        "caption_fetcher": caption_fetcher,
        "downloader": downloader,
        "transcriber": transcriber,
        "summarizer": summarizer,
    }


@pytest.fixture
def orchestrator(leaves, store):
    return PipelineOrchestrator(store=store, preview_length=500, **leaves)


def run(orchestrator, **body):
    body.setdefault("youtubeUrl", "https://www.youtube.com/watch?v=IY2ZfZpmSfI")
    return [event.to_payload() for event in orchestrator.run(PipelineRequest(**body))]


def stage_statuses(events):
    return [(e["stage"], e["status"]) for e in events]


def test_caption_path(orchestrator, leaves, store):
    events = run(orchestrator, language="he")

    assert stage_statuses(events) == [
        ("download", "processing"),
        ("download", "skipped"),
        ("transcribe", "skipped"),
        ("transcribe", "completed"),
        ("summarize", "processing"),
        ("summarize", "completed"),
        ("complete", "success"),
    ]
    leaves["downloader"].download_audio.assert_not_called()
    leaves["transcriber"].transcribe.assert_not_called()
    leaves["caption_fetcher"].fetch.assert_called_once_with("https://www.youtube.com/watch?v=IY2ZfZpmSfI", "he")
    leaves["summarizer"].summarize.assert_called_once_with(CAPTION_TEXT, "he")

    assert events[3]["usedYouTubeTranscript"] is True
    final = events[-1]
    assert final["usedYouTubeTranscript"] is True
    assert final["videoId"] == "IY2ZfZpmSfI"
    assert final["language"] == "he"
    assert final["summary"] == SUMMARY_TEXT
    assert "audioPath" not in final
    assert final["transcriptFilePath"] == events[3]["transcriptFilePath"]
    assert final["savedTo"] == final["summaryFilePath"] == events[5]["summaryFilePath"]


def test_caption_path_persists_matching_artifacts(orchestrator, store):
    events = run(orchestrator, language="he")
    final = events[-1]

    transcripts = list(store.transcripts_dir.iterdir())
    summaries = list(store.summaries_dir.iterdir())
    assert [p.name for p in transcripts] == [final["transcriptFilePath"]]
    assert [p.name for p in summaries] == [final["summaryFilePath"]]
    assert store.transcript_path(final["transcriptFilePath"]).read_text(encoding="utf-8") == CAPTION_TEXT

    bundle = store.summary_path(final["summaryFilePath"]).read_text(encoding="utf-8")
    assert bundle.startswith("YouTube URL: https://www.youtube.com/watch?v=IY2ZfZpmSfI\nLanguage: he\nTimestamp: ")
    assert f"=== TRANSCRIPT ===\n{CAPTION_TEXT}\n" in bundle
    assert f"=== SUMMARY ===\n{final['summary']}\n" in bundle
    assert final["transcriptFilePath"].endswith("-transcript.txt")
    assert final["summaryFilePath"].endswith("-summary.txt")


def test_forced_audio_path(orchestrator, leaves):
    events = run(orchestrator, language="he", forceAudioDownload=True)

    assert stage_statuses(events) == [
        ("download", "processing"),
        ("download", "completed"),
        ("transcribe", "processing"),
        ("transcribe", "completed"),
        ("summarize", "processing"),
        ("summarize", "completed"),
        ("complete", "success"),
    ]
    assert all(e["status"] != "skipped" for e in events)
    leaves["caption_fetcher"].fetch.assert_not_called()
    leaves["transcriber"].transcribe.assert_called_once_with(leaves["downloader"].download_audio.return_value, "he")
    assert events[1]["audioPath"] == "audio-1-abc.m4a"

    final = events[-1]
    assert final["usedYouTubeTranscript"] is False
    assert final["audioPath"] == "audio-1-abc.m4a"
    assert final["transcript"] == SPOKEN_TEXT[:500] + "..."


def test_no_captions_falls_back_to_audio(orchestrator, leaves):
    leaves["caption_fetcher"].fetch.return_value = None

    events = run(orchestrator)

    assert stage_statuses(events)[:4] == [
        ("download", "processing"),
        ("download", "processing"),
        ("download", "completed"),
        ("transcribe", "processing"),
    ]
    assert "No YouTube transcript found" in events[1]["message"]
    leaves["downloader"].download_audio.assert_called_once_with("IY2ZfZpmSfI")
    assert events[-1]["stage"] == "complete"


def test_whitespace_caption_counts_as_unavailable(orchestrator, leaves):
    leaves["caption_fetcher"].fetch.return_value = "   \n"

    run(orchestrator)

    leaves["downloader"].download_audio.assert_called_once()


@pytest.mark.parametrize("url", ["not a url", ""])
def test_invalid_url_single_error_frame(orchestrator, leaves, store, url):
    events = run(orchestrator, youtubeUrl=url)

    assert len(events) == 1
    assert events[0]["stage"] == "error" and events[0]["status"] == "error"
    assert "progress" not in events[0]
    leaves["caption_fetcher"].fetch.assert_not_called()
    assert not store.transcripts_dir.exists() or not list(store.transcripts_dir.iterdir())
    assert not store.summaries_dir.exists() or not list(store.summaries_dir.iterdir())


def test_missing_download_tool(orchestrator, leaves):
    leaves["caption_fetcher"].fetch.return_value = None
    leaves["downloader"].download_audio.side_effect = DependencyMissingError(
        "yt-dlp", "Please install it with: pip install yt-dlp"
    )

    events = run(orchestrator)

    assert events[-1]["stage"] == "error"
    assert "yt-dlp" in events[-1]["message"]
    assert events[-1]["progress"] == {"audioDownloaded": False, "transcribed": False, "summarized": False}
    assert not any(e["stage"] in ("transcribe", "summarize") for e in events)
    assert sum(e["stage"] in ("complete", "error") for e in events) == 1


def test_transcription_failure_snapshot(orchestrator, leaves):
    leaves["transcriber"].transcribe.side_effect = StageFailureError("whisper-cli did not create a transcript file")

    events = run(orchestrator, forceAudioDownload=True)

    assert events[-1]["progress"] == {"audioDownloaded": True, "transcribed": False, "summarized": False}
    assert not any(e["stage"] == "summarize" for e in events)


def test_empty_transcription_fails(orchestrator, leaves, store):
    leaves["transcriber"].transcribe.return_value = "  "

    events = run(orchestrator, forceAudioDownload=True)

    assert events[-1]["stage"] == "error"
    assert events[-1]["error"] == "Failed to get transcript"
    assert not store.transcripts_dir.exists() or not list(store.transcripts_dir.iterdir())


def test_summarizer_failure_keeps_transcript(orchestrator, leaves, store):
    leaves["summarizer"].summarize.side_effect = BackendUnreachableError("Failed to connect to Ollama")

    events = run(orchestrator, forceAudioDownload=True)

    final = events[-1]
    assert final["stage"] == "error"
    assert final["message"] == "Failed to connect to Ollama"
    assert final["progress"] == {"audioDownloaded": True, "transcribed": True, "summarized": False}
    assert len(list(store.transcripts_dir.iterdir())) == 1


def test_summarizer_failure_on_caption_path(orchestrator, leaves):
    leaves["summarizer"].summarize.side_effect = RuntimeError("boom")

    final = run(orchestrator)[-1]

    assert final["error"] == "Failed to process video"
    assert final["message"] == "boom"
    # skipped stages are not reported as done
    assert final["progress"] == {"audioDownloaded": False, "transcribed": False, "summarized": False}


def test_unknown_language_falls_back(orchestrator, leaves):
    events = run(orchestrator, language="xx")

    assert events[-1]["language"] == "en"
    leaves["summarizer"].summarize.assert_called_once_with(CAPTION_TEXT, "en")


def test_stage_tracker_terminal_states():
    tracker = StageTracker()
    tracker.start(Stage.DOWNLOAD)
    tracker.complete(Stage.DOWNLOAD)

    with pytest.raises(ValueError):
        tracker.start(Stage.DOWNLOAD)
    with pytest.raises(ValueError):
        tracker.skip_acquisition()
    assert tracker.status(Stage.TRANSCRIBE) == StageStatus.NOT_STARTED


def test_stage_tracker_skips_together():
    tracker = StageTracker()
    tracker.skip_acquisition()

    assert tracker.status(Stage.DOWNLOAD) == StageStatus.SKIPPED
    assert tracker.status(Stage.TRANSCRIBE) == StageStatus.SKIPPED
    with pytest.raises(ValueError):
        tracker.complete(Stage.TRANSCRIBE)


def test_stage_tracker_fail_running():
    tracker = StageTracker()
    tracker.start(Stage.DOWNLOAD)
    tracker.complete(Stage.DOWNLOAD)
    tracker.start(Stage.TRANSCRIBE)
    tracker.fail_running()

    assert tracker.status(Stage.TRANSCRIBE) == StageStatus.FAILED
    assert tracker.snapshot().model_dump() == {"audioDownloaded": True, "transcribed": False, "summarized": False}


def test_artifact_names_never_collide(store):
    names = {store.save_transcript("text", "existing_caption").filename for _ in range(5)}
    assert len(names) == 5
