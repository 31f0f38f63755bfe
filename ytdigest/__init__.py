"""
YouTube Transcript Digest.

This application turns a YouTube URL into a summary: it fetches existing
captions or downloads and transcribes the audio, then summarizes the
transcript with a locally hosted language model.
"""

from ytdigest.config import config

__version__ = config.APP_VERSION
