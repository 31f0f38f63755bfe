"""
Persistence of transcript and summary artifacts.

Files are named after the wall-clock time they were written, e.g.
``2024-05-01T12-30-45-123Z-transcript.txt``. Writes use exclusive
creation, so concurrent requests landing on the same millisecond get a
numeric suffix instead of overwriting each other.
"""

from pathlib import Path
from typing import Optional

from ytdigest.config import config
from ytdigest.models.schemas import SummaryArtifact, TranscriptArtifact, TranscriptSource
from ytdigest.utils.helpers import artifact_timestamp, ensure_dir, iso_timestamp
from ytdigest.utils.logger import logging


def format_summary_bundle(video_url: str, language: str, timestamp: str, transcript: str, summary: str) -> str:
    return (
        f"YouTube URL: {video_url}\n"
        f"Language: {language}\n"
        f"Timestamp: {timestamp}\n"
        f"\n"
        f"=== TRANSCRIPT ===\n"
        f"{transcript}\n"
        f"\n"
        f"=== SUMMARY ===\n"
        f"{summary}\n"
    )


class ArtifactStore:
    """Writes artifacts into the transcripts and summaries directories."""

    def __init__(self, transcripts_dir: Optional[Path] = None, summaries_dir: Optional[Path] = None):
        self.transcripts_dir = Path(transcripts_dir or config.TRANSCRIPTS_DIR)
        self.summaries_dir = Path(summaries_dir or config.SUMMARIES_DIR)

    def save_transcript(self, text: str, source: TranscriptSource) -> TranscriptArtifact:
        filename = self._write(self.transcripts_dir, "transcript", text)
        logging.info(f"Transcript saved to: {filename}")
        return TranscriptArtifact(text=text, source=source, filename=filename)

    def save_summary(self, video_url: str, language: str, transcript: str, summary: str) -> SummaryArtifact:
        timestamp = iso_timestamp()
        content = format_summary_bundle(video_url, language, timestamp, transcript, summary)
        filename = self._write(self.summaries_dir, "summary", content)
        logging.info(f"Summary saved to: {filename}")
        return SummaryArtifact(
            video_url=video_url,
            language=language,
            timestamp=timestamp,
            transcript=transcript,
            summary=summary,
            filename=filename,
        )

    def transcript_path(self, filename: str) -> Path:
        return self.transcripts_dir / filename

    def summary_path(self, filename: str) -> Path:
        return self.summaries_dir / filename

    @staticmethod
    def _write(directory: Path, kind: str, content: str) -> str:
        ensure_dir(directory)
        stamp = artifact_timestamp()
        sequence = 0
        while True:
            suffix = f"-{sequence}" if sequence else ""
            filename = f"{stamp}{suffix}-{kind}.txt"
            try:
                with open(directory / filename, "x", encoding="utf-8") as f:
                    f.write(content)
                return filename
            except FileExistsError:
                sequence += 1
