"""
Helper utility functions for the YouTube transcript digest application.
"""

import os
import re
import random
import string
import time
from datetime import datetime, timezone
from typing import Optional


_VIDEO_ID_RE = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?|shorts|live)/|.*[?&]v=)|youtu\.be/)"
    r"([^\"&?/\s]{11})"
)


def extract_video_id(url: str) -> Optional[str]:
    """
    Extract the 11-character video ID from a YouTube URL.

    Args:
        url: YouTube URL (watch, short, embed, shorts or live form)

    Returns:
        Video ID or None if extraction fails
    """
    if not url:
        return None
    match = _VIDEO_ID_RE.search(url)
    return match.group(1) if match else None


def watch_url(video_id: str) -> str:
    """Canonical watch URL for a video ID."""
    return f"https://www.youtube.com/watch?v={video_id}"


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Get an ISO 8601 UTC timestamp with millisecond precision.

    Returns:
        Timestamp such as ``2024-05-01T12:30:45.123Z``
    """
    moment = moment or datetime.now(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def artifact_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO timestamp with colons and dots replaced by dashes, safe for filenames."""
    return re.sub(r"[:.]", "-", iso_timestamp(moment))


def unique_suffix() -> str:
    """Millisecond clock plus a short random tag, for temp file names."""
    tag = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"{int(time.time() * 1000)}-{tag}"


def ensure_dir(directory) -> None:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        directory: Directory path to ensure exists
    """
    os.makedirs(directory, exist_ok=True)


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Truncate text to a maximum length.

    Args:
        text: Text to truncate
        max_length: Number of characters kept before the suffix
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length] + suffix
