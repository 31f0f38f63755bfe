"""
YouTube audio downloader module.
"""

from pathlib import Path
from typing import Optional

from ytdigest.config import config
from ytdigest.utils.error_handling import PipelineError, StageFailureError
from ytdigest.utils.helpers import unique_suffix, watch_url
from ytdigest.utils.logger import logging
from ytdigest.utils.process import CommandRunner, SubprocessRunner


# Containers yt-dlp may leave behind, in order of preference
AUDIO_EXTENSIONS = (".m4a", ".mp3", ".opus", ".webm")
CANONICAL_EXTENSION = ".m4a"
# Never audio: in-progress downloads and metadata
NON_AUDIO_SUFFIXES = (".part", ".ytdl", ".temp", ".js", ".json", ".vtt", ".srt")


class AudioDownloader:
    """Class to handle downloading the audio track of a YouTube video."""

    def __init__(self, runner: Optional[CommandRunner] = None, output_directory: Optional[Path] = None,
                 timeout: Optional[float] = None):
        """
        Initialize the downloader.

        Args:
            runner: Command runner used to invoke yt-dlp
            output_directory: Where audio files are written (defaults to TMP_DIR)
            timeout: Seconds before the download is abandoned
        """
        self.runner = runner or SubprocessRunner()
        self.output_directory = Path(output_directory or config.TMP_DIR)
        self.timeout = timeout or config.DOWNLOAD_TIMEOUT

    def download_audio(self, video_id: str) -> Path:
        """
        Download audio and return the file path.

        Args:
            video_id: YouTube video ID

        Returns:
            Path to the downloaded audio file, always with a .m4a extension

        Raises:
            DependencyMissingError: yt-dlp is not installed
            StageFailureError: the download failed or produced no file
        """
        self.output_directory.mkdir(parents=True, exist_ok=True)
        base_name = f"audio-{unique_suffix()}"
        output_base = self.output_directory / base_name

        args = [
            "yt-dlp",
            "-x",
            "--audio-format", "m4a",
            "--no-playlist",
            "--no-write-info-json",
            "--no-write-subs",
            "--no-write-auto-subs",
            "-o", f"{output_base}.%(ext)s",
            watch_url(video_id),
        ]
        logging.info(f"Downloading audio: {video_id}")

        try:
            result = self.runner.run(args, timeout=self.timeout, cwd=str(self.output_directory))
            self._remove_byproducts(base_name)

            if not result.ok:
                raise StageFailureError(
                    f"Failed to download audio: yt-dlp exited with {result.exit_code}: {result.stderr.strip()[-300:]}"
                )

            audio_path = self._locate_output(base_name)
            if audio_path is None:
                raise StageFailureError(f"Failed to download audio: downloaded file not found. yt-dlp output: {result.stdout.strip()[-300:]}")

            final_path = output_base.with_suffix(CANONICAL_EXTENSION)
            if audio_path != final_path:
                audio_path.rename(final_path)
            logging.info(f"Audio saved to: {final_path}")
            return final_path
        except PipelineError:
            self._remove_partial(base_name)
            raise
        except Exception as e:
            self._remove_partial(base_name)
            raise StageFailureError(f"Failed to download audio: {e}") from e

    def _locate_output(self, base_name: str) -> Optional[Path]:
        for extension in AUDIO_EXTENSIONS:
            candidate = self.output_directory / f"{base_name}{extension}"
            if candidate.exists():
                return candidate
        matches = sorted(
            p for p in self.output_directory.glob(f"{base_name}*")
            if p.suffix.lower() not in NON_AUDIO_SUFFIXES
        )
        return matches[0] if matches else None

    def _remove_byproducts(self, base_name: str):
        """Best-effort removal of player scripts and metadata yt-dlp may write."""
        for path in self.output_directory.iterdir():
            name = path.name
            ours = name.startswith(base_name) and path.suffix in (".js", ".json")
            if "player-script" in name or ours:
                try:
                    path.unlink()
                    logging.debug(f"Cleaned up extra file: {name}")
                except OSError:
                    logging.debug(f"Could not clean up {name}")

    def _remove_partial(self, base_name: str):
        for path in self.output_directory.glob(f"{base_name}*"):
            try:
                path.unlink()
            except OSError:
                logging.debug(f"Could not clean up {path.name}")
