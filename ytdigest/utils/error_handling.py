"""
Centralized error handling for the application.

Every fatal pipeline failure is one of the exceptions below. The
orchestrator turns them into a single terminal ``error`` frame via
:func:`error_payload`.
"""

import json
from typing import Any, Dict, Optional

from ytdigest.config import config
from ytdigest.utils.logger import logging


class PipelineError(Exception):
    """Base class for failures that end a pipeline run."""

    error = "Failed to process video"

    def __init__(self, message: str, error: Optional[str] = None):
        self.message = message
        if error:
            self.error = error
        super().__init__(message)


class ValidationError(PipelineError):
    """The request could not be accepted (missing or unparseable URL)."""

    error = "Invalid YouTube URL"


class DependencyMissingError(PipelineError):
    """A required external tool or model file is not installed."""

    def __init__(self, tool: str, hint: str):
        self.tool = tool
        self.hint = hint
        super().__init__(f"{tool} is not installed. {hint}")


class StageFailureError(PipelineError):
    """An external tool ran but produced no usable output, or timed out."""


class BackendUnreachableError(PipelineError):
    """The summarization backend refused the connection."""


class ModelNotFoundError(PipelineError):
    """The summarization backend does not know the configured model."""

    def __init__(self, model: str):
        self.model = model
        super().__init__(
            f'Ollama model "{model}" not found. Install it with: ollama pull {model}'
        )


class EmptyResultError(PipelineError):
    """A stage completed but returned empty text where text was required."""


def error_payload(exc: Exception, progress: Optional[Dict[str, bool]] = None) -> Dict[str, Any]:
    """
    Build the fields of a terminal error frame for an exception.

    Args:
        exc: The exception that ended the run
        progress: Partial-progress snapshot, omitted when None

    Returns:
        Dictionary with ``error``, ``message`` and optionally ``progress``
    """
    if isinstance(exc, PipelineError):
        payload = {"error": exc.error, "message": exc.message}
    else:
        payload = {"error": PipelineError.error, "message": str(exc) or "Unknown error occurred"}
    if progress is not None:
        payload["progress"] = progress
    return payload


def log_diagnostic_info(context: Dict[str, Any]):
    """
    Log diagnostic information for debugging.

    Args:
        context: Dictionary of diagnostic information
    """
    if not config.DEBUG:
        return

    logging.debug(f"Diagnostic info: {json.dumps(context, default=str, ensure_ascii=False)}")
