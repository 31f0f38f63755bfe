"""
Module for transcribing audio files with whisper.cpp.
"""

from pathlib import Path
from typing import List, Optional

from ytdigest.config import config
from ytdigest.core.languages import whisper_code
from ytdigest.utils.error_handling import DependencyMissingError, EmptyResultError, StageFailureError
from ytdigest.utils.logger import logging
from ytdigest.utils.process import CommandRunner, SubprocessRunner
from ytdigest.utils.retry import wait_until


# whisper-cli reads flac, mp3, ogg and wav; these need converting first
CONVERT_EXTENSIONS = (".m4a", ".aac", ".webm", ".opus")
# Files whisper-cli may write next to the requested .txt
AUXILIARY_EXTENSIONS = (".txt", ".srt", ".vtt", ".json")


def model_search_paths(model: str, model_dir: Path) -> List[Path]:
    """Locations checked for ``ggml-<model>.bin``, most specific first."""
    filename = f"ggml-{model}.bin"
    return [
        Path(model_dir) / filename,
        Path("/opt/homebrew/share/whisper-cpp/models") / filename,
        Path("/usr/local/share/whisper-cpp/models") / filename,
        config.BASE_DIR / "models" / filename,
        Path.home() / ".cache" / "whisper" / filename,
    ]


class AudioTranscriber:
    """Class to handle audio transcription operations."""

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        model: Optional[str] = None,
        model_dir: Optional[Path] = None,
        timeout: Optional[float] = None,
        convert_timeout: Optional[float] = None,
        wait_attempts: Optional[int] = None,
        wait_interval: Optional[float] = None,
    ):
        self.runner = runner or SubprocessRunner()
        self.model = model or config.WHISPER_MODEL
        self.model_dir = Path(model_dir or config.WHISPER_MODEL_DIR)
        self.timeout = timeout or config.TRANSCRIBE_TIMEOUT
        self.convert_timeout = convert_timeout or config.CONVERT_TIMEOUT
        self.wait_attempts = config.TRANSCRIPT_WAIT_ATTEMPTS if wait_attempts is None else wait_attempts
        self.wait_interval = config.TRANSCRIPT_WAIT_INTERVAL if wait_interval is None else wait_interval

    def resolve_model_path(self) -> Path:
        """
        Find the whisper.cpp model file.

        Raises:
            DependencyMissingError: the model is in none of the search paths
        """
        for path in model_search_paths(self.model, self.model_dir):
            if path.exists():
                logging.debug(f"Using whisper model at: {path}")
                return path
        raise DependencyMissingError(
            f"Whisper model ggml-{self.model}.bin",
            "Download it from https://huggingface.co/ggerganov/whisper.cpp/tree/main "
            f"and place it in {self.model_dir} or set WHISPER_MODEL_DIR.",
        )

    def transcribe(self, audio_path: Path, language: str = "en") -> str:
        """
        Transcribe an audio file to plain text.

        The audio file, any converted intermediate and every output file
        whisper-cli wrote are removed whether transcription succeeds or
        fails.

        Args:
            audio_path: Path to the downloaded audio
            language: Language code of the spoken audio

        Returns:
            Trimmed transcript text

        Raises:
            DependencyMissingError: whisper-cli, ffmpeg or the model is missing
            StageFailureError: no transcript file was produced
            EmptyResultError: the transcript file was empty
        """
        audio_path = Path(audio_path)
        if not audio_path.is_file():
            raise StageFailureError(f"Audio file not found at {audio_path}")

        output_base = audio_path.with_suffix("")
        audio_to_transcribe = audio_path

        try:
            model_path = self.resolve_model_path()

            if audio_path.suffix.lower() in CONVERT_EXTENSIONS:
                audio_to_transcribe = self._convert_to_wav(audio_path)

            whisper_lang = whisper_code(language)
            args = [
                "whisper-cli",
                "-m", str(model_path),
                str(audio_to_transcribe),
                "-otxt",
                "-of", str(output_base),
                "-l", whisper_lang,
            ]
            logging.info(f"Transcribing audio file: {audio_to_transcribe} (language: {whisper_lang})")
            result = self.runner.run(args, timeout=self.timeout)
            if not result.ok:
                # whisper-cli reports model and GPU initialization on stderr and
                # can exit non-zero after writing a usable transcript
                logging.info(f"whisper-cli exited with {result.exit_code}; checking for output file")
                logging.debug(f"whisper-cli stderr: {result.stderr.strip()[-500:]}")

            transcript_path = self._wait_for_output(output_base)
            transcription = transcript_path.read_text(encoding="utf-8", errors="replace").strip()
            if not transcription:
                raise EmptyResultError(
                    "Transcription returned empty result. The audio file might be corrupted or too short.",
                    error="Failed to get transcript",
                )

            logging.info(f"Transcription complete ({len(transcription)} characters)")
            return transcription
        finally:
            self._cleanup(audio_path, audio_to_transcribe, output_base)

    def _convert_to_wav(self, audio_path: Path) -> Path:
        wav_path = audio_path.with_suffix(".wav")
        logging.info(f"Converting {audio_path.suffix} to WAV format for whisper-cli...")
        args = ["ffmpeg", "-i", str(audio_path), "-ar", "16000", "-ac", "1", "-f", "wav", str(wav_path), "-y"]
        result = self.runner.run(args, timeout=self.convert_timeout)
        if not result.ok or not wav_path.exists():
            raise StageFailureError(
                f"Failed to convert audio to WAV format: {result.stderr.strip()[-300:]}"
            )
        return wav_path

    def _wait_for_output(self, output_base: Path) -> Path:
        expected = output_base.with_suffix(".txt")
        if wait_until(expected.exists, self.wait_attempts, self.wait_interval,
                      description="whisper output file"):
            return expected

        for extension in (".srt", ".vtt"):
            alternative = output_base.with_suffix(extension)
            if alternative.exists():
                logging.info(f"Using found transcript file: {alternative}")
                return alternative

        siblings = sorted(p.name for p in output_base.parent.glob(f"{output_base.name}*"))
        raise StageFailureError(
            f"whisper-cli did not create a transcript file after {self.wait_attempts} attempts. "
            f"Check that whisper-cpp and ggml-{self.model}.bin are installed. Files: {', '.join(siblings)}"
        )

    @staticmethod
    def _cleanup(audio_path: Path, converted_path: Path, output_base: Path):
        # A failed or timed-out ffmpeg run can leave a partial wav behind
        leftovers = [audio_path, converted_path, audio_path.with_suffix(".wav")] + [output_base.with_suffix(ext) for ext in AUXILIARY_EXTENSIONS]
        for path in dict.fromkeys(leftovers):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logging.warning(f"Could not remove {path}: {e}")
