"""
Caption fetching: get an existing transcript for a video without
running speech recognition.

Two strategies are tried in a fixed order: the yt-dlp subtitle download,
then the transcript-API lookup. Failures here are logged and reported as
"unavailable"; the pipeline then falls back to audio transcription.
"""

import re
from pathlib import Path
from typing import Iterable, List, Optional

from youtube_transcript_api import YouTubeTranscriptApi

from ytdigest.config import config
from ytdigest.core.languages import youtube_code
from ytdigest.utils.helpers import extract_video_id, unique_suffix, watch_url
from ytdigest.utils.logger import logging
from ytdigest.utils.process import CommandRunner, SubprocessRunner


_TIMESTAMP_RE = re.compile(r"^(?:\d{1,2}:)?\d{2}:\d{2}[.,]\d{3}\s*-->")
_CUE_INDEX_RE = re.compile(r"^\d+$")
_TAG_RE = re.compile(r"<[^>]+>")


def _strip_tags(line: str) -> str:
    previous = None
    while previous != line:
        previous, line = line, _TAG_RE.sub("", line)
    return line


def vtt_to_text(content: str) -> str:
    """
    Convert a VTT or SRT caption payload to plain text.

    Drops the WEBVTT header block, cue indices and timestamp lines,
    strips inline tags and collapses consecutive duplicate lines, which
    auto-generated captions produce constantly. Running it again on its
    own output returns the same text.
    """
    lines = content.lstrip("\ufeff").splitlines()

    if lines and lines[0].strip().startswith("WEBVTT"):
        # Header metadata (Kind:, Language:) runs until the first blank line
        end = 0
        while end < len(lines) and lines[end].strip():
            end += 1
        lines = lines[end:]

    out: List[str] = []
    for line in lines:
        if _TIMESTAMP_RE.match(line.strip()):
            continue
        # Inline tags may wrap a bare number, so classify after stripping them
        cleaned = _strip_tags(line).strip()
        if not cleaned or _CUE_INDEX_RE.match(cleaned) or _TIMESTAMP_RE.match(cleaned):
            continue
        if out and out[-1] == cleaned:
            continue
        out.append(cleaned)

    return "\n".join(out).strip()


class CaptionFetcher:
    """Fetch an existing caption track as plain text."""

    def __init__(self, runner: Optional[CommandRunner] = None, tmp_dir: Optional[Path] = None,
                 timeout: Optional[float] = None, transcript_api: Optional[YouTubeTranscriptApi] = None):
        self.runner = runner or SubprocessRunner()
        self.tmp_dir = Path(tmp_dir or config.TMP_DIR)
        self.timeout = timeout or config.CAPTION_TIMEOUT
        self.transcript_api = transcript_api

    def fetch(self, video: str, language: str = "en") -> Optional[str]:
        """
        Get caption text for a video.

        Args:
            video: Video ID or any YouTube URL
            language: Requested language code

        Returns:
            Caption text, or None when no strategy produced any
        """
        video_id = extract_video_id(video) or video
        url = video if video_id != video else watch_url(video_id)

        logging.info("Trying yt-dlp subtitle download first...")
        try:
            text = self.fetch_with_ytdlp(url, language)
            if text:
                return text
        except Exception as e:
            logging.info(f"yt-dlp caption strategy failed: {e}")

        try:
            text = self.fetch_with_transcript_api(video_id, language)
            if text:
                return text
        except Exception as e:
            logging.info(f"Transcript API strategy failed: {e}")

        logging.info(f"No captions available for {video_id}")
        return None

    def fetch_with_ytdlp(self, url: str, language: str) -> Optional[str]:
        """Download the subtitle track with yt-dlp and convert it to text."""
        yt_lang = youtube_code(language)
        self.tmp_dir.mkdir(parents=True, exist_ok=True)
        prefix = f"captions-{unique_suffix()}"

        args = [
            "yt-dlp",
            "--skip-download",
            "--write-subs",
            "--write-auto-subs",
            "--sub-langs", yt_lang,
            "--sub-format", "vtt",
            "-o", str(self.tmp_dir / f"{prefix}.%(ext)s"),
            url,
        ]
        logging.info(f"Fetching captions with yt-dlp (language: {yt_lang})")

        try:
            result = self.runner.run(args, timeout=self.timeout, cwd=str(self.tmp_dir))
            if not result.ok and "Writing video subtitles" not in result.stdout:
                logging.info(f"yt-dlp exited with {result.exit_code}: {result.stderr.strip()[-300:]}")
                return None

            subtitle = self._find_subtitle(prefix, yt_lang)
            if subtitle is None:
                logging.info(f"No vtt file found matching {prefix}*.{yt_lang}*.vtt")
                return None

            logging.info(f"Found subtitle file: {subtitle.name}")
            text = vtt_to_text(subtitle.read_text(encoding="utf-8", errors="replace"))
            if text:
                logging.info(f"Transcript retrieved using yt-dlp ({len(text)} characters)")
            else:
                logging.info("Subtitle file found but empty after parsing")
            return text or None
        finally:
            self._cleanup(prefix)

    def fetch_with_transcript_api(self, video_id: str, language: str) -> Optional[str]:
        """
        Look the transcript up with youtube-transcript-api.

        The requested language is tried first; if that fails, whatever
        track the video lists first is accepted.
        """
        api = self.transcript_api or YouTubeTranscriptApi()
        languages = list(dict.fromkeys([youtube_code(language), language]))

        try:
            logging.info(f"Fetching transcript with youtube-transcript-api (languages: {languages})")
            snippets = api.fetch(video_id, languages=languages)
        except Exception as lang_error:
            logging.info(f"Failed to fetch with language {languages}: {lang_error}")
            logging.info("Trying to fetch default/available transcript...")
            transcript = next(iter(api.list(video_id)))
            snippets = transcript.fetch()

        text = self._join_snippets(snippets)
        if not text:
            logging.info("Transcript text is empty after processing")
            return None
        logging.info(f"Transcript retrieved with youtube-transcript-api ({len(text)} characters)")
        return text

    @staticmethod
    def _join_snippets(snippets: Iterable) -> str:
        parts = []
        for snippet in snippets or []:
            text = snippet.get("text", "") if isinstance(snippet, dict) else getattr(snippet, "text", "")
            if text and text.strip():
                parts.append(text.strip())
        return " ".join(parts).strip()

    def _find_subtitle(self, prefix: str, yt_lang: str) -> Optional[Path]:
        # yt-dlp names the file <prefix>.<lang>.vtt, sometimes with the language repeated
        pattern = re.compile(rf"^{re.escape(prefix)}.*\.{re.escape(yt_lang)}.*\.vtt$")
        candidates = [p for p in self.tmp_dir.iterdir() if pattern.match(p.name)]
        if not candidates:
            return None
        return max(candidates, key=lambda p: p.stat().st_mtime)

    def _cleanup(self, prefix: str):
        for path in self.tmp_dir.glob(f"{prefix}*"):
            try:
                path.unlink()
            except OSError as e:
                logging.warning(f"Could not remove {path.name}: {e}")
