"""
Progress channel: server-sent event framing for pipeline runs.

The server side drains a run's events on a worker thread and hands them
to the HTTP response as ``data: <json>\\n\\n`` frames, guaranteeing that
the stream ends with exactly one terminal frame. The worker keeps going
if the client disconnects, so artifacts are still written. The client
side parses such a stream back into event dictionaries.
"""

import codecs
import json
import queue
import threading
from typing import Any, Dict, Iterable, Iterator, Optional, Union

from ytdigest.models.schemas import EventStage, EventStatus, ProgressEvent
from ytdigest.utils.error_handling import error_payload
from ytdigest.utils.logger import logging


TERMINAL_STAGES = (EventStage.COMPLETE.value, EventStage.ERROR.value)

_DONE = object()


def format_sse(payload: Union[ProgressEvent, Dict[str, Any]]) -> str:
    """Encode one event as an SSE ``data:`` frame."""
    if isinstance(payload, ProgressEvent):
        payload = payload.to_payload()
    return f"data: {json.dumps(payload, ensure_ascii=False, default=str)}\n\n"


def is_terminal(payload: Dict[str, Any]) -> bool:
    return payload.get("stage") in TERMINAL_STAGES


class ProgressChannel:
    """
    One-directional event stream for a single pipeline run.

    Events flow from the run's generator, consumed on a daemon thread,
    through a queue to :meth:`frames`. Everything after the first
    terminal event is dropped; if the run ends without one, or raises,
    an error frame is synthesized so the client always hears exactly
    one terminal event.
    """

    def __init__(self, events: Iterable[ProgressEvent], background: bool = True):
        self._events = events
        self._background = background
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        if self._background and self._thread is None:
            self._thread = threading.Thread(target=self._pump, name="pipeline-run", daemon=True)
            self._thread.start()

    def _pump(self):
        try:
            for item in self._events:
                self._queue.put(item)
        except Exception as e:
            logging.error(f"Pipeline run raised outside its error handling: {e}")
            self._queue.put(e)
        finally:
            self._queue.put(_DONE)

    def _source(self) -> Iterator[Any]:
        if not self._background:
            try:
                yield from self._events
            except Exception as e:
                logging.error(f"Pipeline run raised outside its error handling: {e}")
                yield e
            return

        self.start()
        while True:
            item = self._queue.get()
            if item is _DONE:
                return
            yield item

    def events(self) -> Iterator[Dict[str, Any]]:
        """Wire payloads, ending with exactly one terminal payload."""
        for item in self._source():
            if isinstance(item, Exception):
                yield ProgressEvent(stage=EventStage.ERROR, status=EventStatus.ERROR, **error_payload(item)).to_payload()
                return
            payload = item.to_payload() if isinstance(item, ProgressEvent) else dict(item)
            yield payload
            if is_terminal(payload):
                return

        logging.error("Pipeline run ended without a terminal event")
        yield ProgressEvent(
            stage=EventStage.ERROR,
            status=EventStatus.ERROR,
            error="Failed to process video",
            message="Processing ended unexpectedly",
        ).to_payload()

    def frames(self) -> Iterator[str]:
        """SSE-encoded frames, suitable for a streaming HTTP response."""
        for payload in self.events():
            yield format_sse(payload)


def iter_sse_events(chunks: Iterable[Union[str, bytes]]) -> Iterator[Dict[str, Any]]:
    """
    Parse an SSE byte or text stream into event dictionaries.

    Chunks may split frames anywhere. Lines that are not ``data:`` lines
    are ignored, as are payloads that fail to parse as JSON.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    for chunk in chunks:
        if isinstance(chunk, bytes):
            # multi-byte characters may straddle chunk boundaries
            chunk = decoder.decode(chunk)
        buffer += chunk
        lines = buffer.split("\n")
        buffer = lines.pop()
        for line in lines:
            payload = _parse_data_line(line)
            if payload is not None:
                yield payload

    # a truncated multi-byte tail surfaces as U+FFFD instead of vanishing
    buffer += decoder.decode(b"", final=True)
    payload = _parse_data_line(buffer)
    if payload is not None:
        yield payload


def _parse_data_line(line: str) -> Optional[Dict[str, Any]]:
    line = line.rstrip("\r")
    if not line.startswith("data:"):
        return None
    try:
        data = json.loads(line[5:].strip())
    except json.JSONDecodeError:
        logging.warning(f"Error parsing SSE data: {line[:200]}")
        return None
    return data if isinstance(data, dict) else None
