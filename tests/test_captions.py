"""
Tests for caption fetching and caption-to-text conversion.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from ytdigest.core.captions import CaptionFetcher, vtt_to_text
from ytdigest.utils.error_handling import DependencyMissingError
from ytdigest.utils.process import CommandResult


def test_vtt_to_text(sample_vtt):
    assert vtt_to_text(sample_vtt) == "Hello world\nThis is a test\nGoodbye"


def test_vtt_to_text_is_idempotent(sample_vtt):
    once = vtt_to_text(sample_vtt)
    assert vtt_to_text(once) == once


def test_vtt_to_text_never_repeats_consecutive_lines(sample_vtt):
    lines = vtt_to_text(sample_vtt).split("\n")
    assert all(a != b for a, b in zip(lines, lines[1:]))


AUTO_CAPTION_VTT = (
    "WEBVTT\n"
    "Kind: captions\n"
    "\n"
    "00:00:01.000 --> 00:00:02.000 align:start position:0%\n"
    "<00:00:01.500><c>42</c>\n"
    "hello<00:00:01.800><c> there</c>\n"
    "\n"
    "00:00:02.000 --> 00:00:03.000\n"
    "<c.colorE5E5E5>nested</c>\n"
)


def test_vtt_to_text_inline_timestamp_tags():
    assert vtt_to_text(AUTO_CAPTION_VTT) == "hello there\nnested"


def test_vtt_to_text_is_idempotent_on_auto_captions():
    once = vtt_to_text(AUTO_CAPTION_VTT)
    assert vtt_to_text(once) == once


def test_vtt_to_text_handles_srt():
    srt = (
        "1\n"
        "00:00:01,000 --> 00:00:03,000\n"
        "First line\n"
        "\n"
        "2\n"
        "00:00:03,000 --> 00:00:05,000\n"
        "<b>Second</b> line\n"
    )
    assert vtt_to_text(srt) == "First line\nSecond line"


def test_vtt_to_text_empty():
    assert vtt_to_text("WEBVTT\n\n") == ""


@pytest.fixture
def tmp_dir(tmp_path):
    return tmp_path / "tmp"


def _writes_subtitle(content, lang="en"):
    """yt-dlp handler that writes a subtitle next to the -o template."""
    def handler(args):
        template = args[args.index("-o") + 1]
        path = template.replace("%(ext)s", f"{lang}.vtt")
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return CommandResult(stdout="[info] Writing video subtitles")
    return handler


def test_ytdlp_strategy_first(runner_factory, tmp_dir, sample_vtt, test_video_url):
    runner = runner_factory({"yt-dlp": _writes_subtitle(sample_vtt)})
    api = MagicMock()
    fetcher = CaptionFetcher(runner=runner, tmp_dir=tmp_dir, transcript_api=api)

    text = fetcher.fetch(test_video_url, "en")

    assert text == "Hello world\nThis is a test\nGoodbye"
    api.fetch.assert_not_called()
    assert list(tmp_dir.iterdir()) == []


def test_ytdlp_uses_youtube_language_code(runner_factory, tmp_dir, sample_vtt, test_video_url):
    runner = runner_factory({"yt-dlp": _writes_subtitle(sample_vtt, lang="iw")})
    fetcher = CaptionFetcher(runner=runner, tmp_dir=tmp_dir, transcript_api=MagicMock())

    assert fetcher.fetch(test_video_url, "he")
    args = runner.calls[0]["args"]
    assert args[args.index("--sub-langs") + 1] == "iw"
    assert "--skip-download" in args


def test_falls_back_to_transcript_api(runner_factory, tmp_dir, test_video_url):
    runner = runner_factory({"yt-dlp": lambda args: CommandResult(exit_code=1, stderr="ERROR: no subtitles")})
    api = MagicMock()
    api.fetch.return_value = [SimpleNamespace(text="Hello"), SimpleNamespace(text="  "), SimpleNamespace(text="there")]
    fetcher = CaptionFetcher(runner=runner, tmp_dir=tmp_dir, transcript_api=api)

    assert fetcher.fetch(test_video_url, "he") == "Hello there"
    api.fetch.assert_called_once_with("IY2ZfZpmSfI", languages=["iw", "he"])


def test_transcript_api_falls_back_to_default_track(runner_factory, tmp_dir, test_video_url):
    runner = runner_factory({"yt-dlp": lambda args: CommandResult(exit_code=1)})
    api = MagicMock()
    api.fetch.side_effect = Exception("No transcript in requested language")
    default_track = MagicMock()
    default_track.fetch.return_value = [{"text": "Default track text"}]
    api.list.return_value = [default_track]
    fetcher = CaptionFetcher(runner=runner, tmp_dir=tmp_dir, transcript_api=api)

    assert fetcher.fetch(test_video_url, "fr") == "Default track text"
    api.list.assert_called_once_with("IY2ZfZpmSfI")


def test_returns_none_when_everything_fails(runner_factory, tmp_dir, test_video_url):
    def missing(args):
        raise DependencyMissingError("yt-dlp", "install it")

    api = MagicMock()
    api.fetch.side_effect = Exception("disabled")
    api.list.side_effect = Exception("disabled")
    fetcher = CaptionFetcher(runner=runner_factory({"yt-dlp": missing}), tmp_dir=tmp_dir, transcript_api=api)

    assert fetcher.fetch(test_video_url, "en") is None


def test_empty_subtitle_falls_through(runner_factory, tmp_dir, test_video_url):
    runner = runner_factory({"yt-dlp": _writes_subtitle("WEBVTT\n\n")})
    api = MagicMock()
    api.fetch.return_value = []
    api.list.return_value = []
    fetcher = CaptionFetcher(runner=runner, tmp_dir=tmp_dir, transcript_api=api)

    assert fetcher.fetch(test_video_url, "en") is None
    api.fetch.assert_called_once()


def test_accepts_bare_video_id(runner_factory, tmp_dir, sample_vtt):
    runner = runner_factory({"yt-dlp": _writes_subtitle(sample_vtt)})
    fetcher = CaptionFetcher(runner=runner, tmp_dir=tmp_dir, transcript_api=MagicMock())

    assert fetcher.fetch("IY2ZfZpmSfI", "en")
    assert runner.calls[0]["args"][-1] == "https://www.youtube.com/watch?v=IY2ZfZpmSfI"
