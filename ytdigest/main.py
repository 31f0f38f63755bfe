"""
Command-line entry point for the YouTube transcript digest.

Runs the pipeline in-process, or against a running server with --server,
and prints progress as it happens.
"""

import argparse
import sys
from typing import Any, Dict

from dotenv import load_dotenv

from ytdigest.core.languages import LANGUAGES
from ytdigest.core.pipeline import PipelineOrchestrator
from ytdigest.core.progress import ProgressChannel
from ytdigest.frontend.api_client import ApiClient
from ytdigest.frontend.state import initial_state, reduce_event
from ytdigest.models.schemas import PipelineRequest


def print_event(event: Dict[str, Any]):
    stage, status = event.get("stage"), event.get("status")
    if stage in ("complete", "error"):
        return
    message = event.get("message") or ""
    print(f"[{stage}:{status}] {message}".rstrip())


def run_local(url: str, language: str, force_audio: bool) -> Dict[str, Any]:
    """Run the pipeline in this process and fold its events."""
    request = PipelineRequest(youtubeUrl=url, language=language, forceAudioDownload=force_audio)
    channel = ProgressChannel(PipelineOrchestrator().run(request), background=False)
    state = initial_state()
    for event in channel.events():
        print_event(event)
        state = reduce_event(state, event)
    return state


def run_remote(server: str, url: str, language: str, force_audio: bool) -> Dict[str, Any]:
    """Run the pipeline on a server and fold the streamed events."""
    client = ApiClient(server)
    return client.summarize_video(url, language, force_audio, on_update=lambda event, _: print_event(event))


def main():
    """Main function to run the application from command line."""
    parser = argparse.ArgumentParser(description="YouTube Transcript Digest")
    parser.add_argument("url", help="YouTube video URL")
    parser.add_argument("--language", default="en", choices=sorted(LANGUAGES),
                        help="Language of the transcript and summary")
    parser.add_argument("--force-audio", action="store_true",
                        help="Skip captions and transcribe the audio")
    parser.add_argument("--server", help="Base URL of a running API server (default: run locally)")

    args = parser.parse_args()

    # Load environment variables
    load_dotenv()

    if args.server:
        state = run_remote(args.server, args.url, args.language, args.force_audio)
    else:
        state = run_local(args.url, args.language, args.force_audio)

    if state["error"]:
        print(f"\nError: {state['error']}")
        if state["errorMessage"]:
            print(state["errorMessage"])
        sys.exit(1)

    result = state["result"]
    print("\n" + "=" * 80)
    source = "YouTube captions" if result.get("usedYouTubeTranscript") else "speech-to-text"
    print(f"Summary of {result.get('videoId')} ({result.get('language')}, transcript from {source})")
    print("=" * 80)
    print(result.get("summary", ""))
    print("=" * 80)
    print(f"Transcript: {result.get('transcriptFilePath')}")
    print(f"Summary:    {result.get('summaryFilePath')}")


if __name__ == "__main__":
    main()
