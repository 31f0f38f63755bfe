"""
Module for summarizing transcripts with a locally hosted Ollama model.
"""

import re
from typing import Optional

import requests

from ytdigest.config import config
from ytdigest.core.prompts import get_policy
from ytdigest.utils.error_handling import (
    BackendUnreachableError,
    EmptyResultError,
    ModelNotFoundError,
    StageFailureError,
)
from ytdigest.utils.logger import logging


MIN_USEFUL_LENGTH = 50

_METADATA_LINE_RES = (
    re.compile(r"^\([^)]*\)$"),   # (speaking in foreign language)
    re.compile(r"^\[.*\]$"),      # [Music]
    re.compile(r"^\d{2}:\d{2}$"),
    re.compile(r"^\d+\s*$"),
)


def clean_transcript(text: str) -> str:
    """
    Drop lines that carry no speech: parenthesized asides, bracketed
    tags, bare timestamps and bare numbers. Falls back to the original
    text when too little is left.
    """
    kept = []
    for line in text.split("\n"):
        stripped = line.strip()
        if stripped and not any(pattern.match(stripped) for pattern in _METADATA_LINE_RES):
            kept.append(line)
    cleaned = "\n".join(kept).strip()
    return cleaned if len(cleaned) > MIN_USEFUL_LENGTH else text


class TranscriptSummarizer:
    """Class to handle transcript summarization operations."""

    def __init__(self, base_url: Optional[str] = None, model: Optional[str] = None,
                 timeout: Optional[float] = None):
        """
        Initialize the summarizer.

        Args:
            base_url: Ollama base URL (defaults to OLLAMA_BASE_URL)
            model: Model identifier (defaults to OLLAMA_MODEL)
            timeout: Seconds to wait for the generation to finish
        """
        self.base_url = (base_url or config.OLLAMA_BASE_URL).rstrip("/")
        self.model = model or config.OLLAMA_MODEL
        self.timeout = timeout or config.SUMMARY_TIMEOUT

    def build_prompt(self, text: str, language: str) -> str:
        return get_policy(language).build_prompt(clean_transcript(text), language)

    def summarize(self, transcript_text: str, language: str = "en") -> str:
        """
        Summarize a transcript text.

        Args:
            transcript_text: Full transcript text to summarize
            language: Language code the summary should be written in

        Returns:
            Summarized text

        Raises:
            BackendUnreachableError: Ollama refused the connection
            ModelNotFoundError: Ollama does not have the configured model
            StageFailureError: the request timed out or failed otherwise
            EmptyResultError: the model returned nothing
        """
        prompt = self.build_prompt(transcript_text, language)
        raw = self._generate(prompt)
        if not raw.strip():
            raise EmptyResultError("Summarization returned an empty response")

        summary = get_policy(language).postprocess(raw)
        if len(summary) < MIN_USEFUL_LENGTH:
            logging.warning("Summary seems too short, using original response")
            summary = raw.strip()

        logging.info(f"Summary generated ({len(summary)} characters)")
        return summary

    def _generate(self, prompt: str) -> str:
        url = f"{self.base_url}/api/generate"
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": 0.3,
                "num_predict": 5000,
                "top_p": 0.9,
                "repeat_penalty": 1.1,
            },
        }
        logging.info(f"Requesting summary from {self.model} at {self.base_url}")

        try:
            response = requests.post(url, json=payload, timeout=self.timeout)
        except requests.exceptions.ConnectionError as e:
            raise BackendUnreachableError(
                f"Failed to connect to Ollama at {self.base_url}. Make sure Ollama is running."
            ) from e
        except requests.exceptions.Timeout as e:
            raise StageFailureError(
                f"Timed out after {self.timeout} seconds waiting for Ollama to respond."
            ) from e

        if response.status_code == 404:
            raise ModelNotFoundError(self.model)
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise StageFailureError(f"Failed to generate summary: {e}") from e

        return response.json().get("response", "") or ""
