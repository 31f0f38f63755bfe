"""
API client for communicating with the YouTube transcript digest backend.
"""

import requests
from typing import Any, Callable, Dict, Iterator, Optional
from urllib.parse import urljoin

from ytdigest.config import config
from ytdigest.core.progress import iter_sse_events
from ytdigest.frontend.state import fold_events, initial_state, reduce_event


class ApiClient:
    """Client for interacting with the YouTube transcript digest API."""

    def __init__(self, base_url: str = config.PUBLIC_URL, timeout: Optional[float] = None):
        """
        Initialize the API client.

        Args:
            base_url: Base URL of the API
            timeout: Read timeout between stream chunks, None to wait indefinitely
        """
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout

    def _url(self, endpoint: str) -> str:
        """Get the full URL for an endpoint."""
        return urljoin(self.base_url, endpoint)

    def stream_summary(self, url: str, language: str = "en", force_audio_download: bool = False) -> Iterator[Dict[str, Any]]:
        """
        Start a summarization and yield its progress events as they arrive.

        Args:
            url: YouTube video URL
            language: Language code for transcript and summary
            force_audio_download: Skip captions and transcribe the audio

        Yields:
            Decoded progress events
        """
        with requests.post(
            self._url("api/summarize"),
            json={
                "youtubeUrl": url,
                "language": language,
                "forceAudioDownload": force_audio_download,
            },
            stream=True,
            timeout=self.timeout,
        ) as response:
            response.raise_for_status()
            yield from iter_sse_events(response.iter_content(chunk_size=None))

    def summarize_video(
        self,
        url: str,
        language: str = "en",
        force_audio_download: bool = False,
        on_update: Optional[Callable[[Dict[str, Any], Dict[str, Any]], None]] = None,
    ) -> Dict[str, Any]:
        """
        Run a summarization to the end and return the folded client state.

        Args:
            url: YouTube video URL
            language: Language code
            force_audio_download: Skip captions and transcribe the audio
            on_update: Called with (event, state) after every event

        Returns:
            Final client state (progress colors, messages, result, error)
        """
        state = initial_state()
        for event in self.stream_summary(url, language, force_audio_download):
            state = reduce_event(state, event)
            if on_update:
                on_update(event, state)
        if not state["finished"]:
            state = fold_events([{"stage": "error", "status": "error", "error": "Stream ended unexpectedly"}], state)
        return state

    def fetch_artifact(self, kind: str, filename: str) -> str:
        """
        Download a persisted artifact.

        Args:
            kind: "transcripts" or "summaries"
            filename: File name reported in a progress event

        Returns:
            File contents
        """
        if kind not in ("transcripts", "summaries"):
            raise ValueError(f"Unknown artifact kind: {kind}")
        response = requests.get(self._url(f"{kind}/{filename}"), timeout=self.timeout)
        response.raise_for_status()
        response.encoding = "utf-8"
        return response.text

    def health(self) -> Dict[str, Any]:
        """Check that the server is up."""
        response = requests.get(self._url("api/health"), timeout=self.timeout or 10)
        response.raise_for_status()
        return response.json()
