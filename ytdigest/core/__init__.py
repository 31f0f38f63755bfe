"""
Core functionality for the YouTube transcript digest application.

This package contains the caption fetcher, audio downloader, transcriber
and summarizer, plus the pipeline that sequences them and the progress
channel that streams its events.
"""
