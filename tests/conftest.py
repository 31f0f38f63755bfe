"""
Configuration for pytest tests.
"""

import os
import shutil
import pytest
from pathlib import Path

# Point every data directory at a throwaway tree before ytdigest is imported
TEST_DATA_DIR = Path(__file__).resolve().parent.parent / "test_data"
os.environ["DATA_DIR"] = str(TEST_DATA_DIR)
os.environ["TRANSCRIPTS_DIR"] = str(TEST_DATA_DIR / "transcripts")
os.environ["SUMMARIES_DIR"] = str(TEST_DATA_DIR / "summaries")
os.environ["TMP_DIR"] = str(TEST_DATA_DIR / "tmp")
os.environ["LOG_DIR"] = str(TEST_DATA_DIR / "logs")
os.environ["ENVIRONMENT"] = "development"

from ytdigest.utils.process import CommandResult  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Remove the test data tree after the session."""
    yield
    shutil.rmtree(TEST_DATA_DIR, ignore_errors=True)


class FakeRunner:
    """
    Stand-in for SubprocessRunner.

    ``handlers`` maps an executable name to a callable taking the argument
    list and returning a CommandResult (or raising). Every call is recorded.
    """

    def __init__(self, handlers=None):
        self.handlers = handlers or {}
        self.calls = []

    def run(self, args, timeout=None, cwd=None):
        args = [str(arg) for arg in args]
        self.calls.append({"args": args, "timeout": timeout, "cwd": cwd})
        handler = self.handlers.get(args[0])
        if handler is None:
            return CommandResult()
        return handler(args)

    def tools(self):
        return [call["args"][0] for call in self.calls]


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def test_video_url():
    """Return a test YouTube video URL."""
    return "https://www.youtube.com/watch?v=IY2ZfZpmSfI"


@pytest.fixture
def sample_vtt():
    return (
        "WEBVTT\n"
        "Kind: captions\n"
        "Language: en\n"
        "\n"
        "1\n"
        "00:00:00.000 --> 00:00:02.000 align:start position:0%\n"
        "Hello <c>world</c>\n"
        "\n"
        "2\n"
        "00:00:02.000 --> 00:00:04.000\n"
        "Hello world\n"
        "This is a <i>test</i>\n"
        "\n"
        "3\n"
        "00:00:04.000 --> 00:00:06.000\n"
        "This is a test\n"
        "Goodbye\n"
    )


@pytest.fixture
def runner_factory():
    """Build a FakeRunner with per-tool handlers."""
    return FakeRunner
