"""
External tool invocation.

Every external program (yt-dlp, ffmpeg, whisper-cli) is run through a
``CommandRunner``: a discrete argument list in, ``CommandResult`` out.
Components receive the runner in their constructor so tests can swap in
a fake.
"""

import subprocess
from typing import Dict, Optional, Protocol, Sequence

from pydantic import BaseModel

from ytdigest.utils.error_handling import DependencyMissingError, StageFailureError
from ytdigest.utils.logger import logging


# Install guidance shown when an executable is missing
INSTALL_HINTS: Dict[str, str] = {
    "yt-dlp": "Please install it with: pip install yt-dlp (or brew install yt-dlp ffmpeg)",
    "ffmpeg": "Please install it with: brew install ffmpeg (or apt install ffmpeg)",
    "whisper-cli": "Please install whisper.cpp, e.g. brew install whisper-cpp",
}


class CommandResult(BaseModel):
    """Captured outcome of one external command."""
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandRunner(Protocol):
    def run(self, args: Sequence[str], timeout: Optional[float] = None,
            cwd: Optional[str] = None) -> CommandResult:
        ...


class SubprocessRunner:
    """Runs commands with :mod:`subprocess`, never through a shell."""

    def run(self, args: Sequence[str], timeout: Optional[float] = None,
            cwd: Optional[str] = None) -> CommandResult:
        """
        Run a command and capture its output.

        Args:
            args: Executable followed by its arguments
            timeout: Seconds before the command is killed
            cwd: Working directory

        Returns:
            CommandResult; a non-zero exit code is returned, not raised

        Raises:
            DependencyMissingError: the executable is not on PATH
            StageFailureError: the command exceeded its timeout
        """
        args = [str(arg) for arg in args]
        tool = args[0]
        logging.debug(f"Running command: {args}")
        try:
            completed = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=cwd,
            )
        except FileNotFoundError:
            raise DependencyMissingError(tool, INSTALL_HINTS.get(tool, "Please install it and make sure it is on PATH."))
        except subprocess.TimeoutExpired:
            raise StageFailureError(f"{tool} timed out after {timeout} seconds")

        return CommandResult(
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            exit_code=completed.returncode,
        )
