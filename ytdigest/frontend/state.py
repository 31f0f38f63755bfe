"""
Client-side view of a pipeline run, built by folding progress events.

``reduce_event`` is a pure function: it returns a new state and never
mutates its input. Result fields are only ever added or overwritten,
never removed, and stage colors only move forward, so events arriving
late or out of order cannot erase what was already shown.
"""

from typing import Any, Dict, Iterable, Optional

STAGES = ("download", "transcribe", "summarize")

GREY = "grey"
ORANGE = "orange"
SKIPPED = "skipped"
GREEN = "green"

_COLOR_RANK = {GREY: 0, ORANGE: 1, SKIPPED: 2, GREEN: 3}

_STATUS_COLORS = {
    "processing": ORANGE,
    "skipped": SKIPPED,
    "completed": GREEN,
}

# Fields a stage frame contributes to the accumulated result
_RESULT_FIELDS = {
    "download": ("audioPath",),
    "transcribe": ("transcriptFilePath", "usedYouTubeTranscript"),
    "summarize": ("summaryFilePath", "summary"),
}

_FRAME_KEYS = ("stage", "status", "message")


def initial_state() -> Dict[str, Any]:
    return {
        "progress": {stage: GREY for stage in STAGES},
        "messages": {stage: "" for stage in STAGES},
        "result": {},
        "error": None,
        "errorMessage": None,
        "partialProgress": None,
        "loading": True,
        "finished": False,
    }


def _advance(current: str, proposed: str) -> str:
    return proposed if _COLOR_RANK[proposed] > _COLOR_RANK[current] else current


def _merge(result: Dict[str, Any], fields: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(result)
    merged.update({key: value for key, value in fields.items() if value is not None})
    return merged


def reduce_event(state: Dict[str, Any], event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fold one progress event into the client state.

    Args:
        state: Current state (left untouched)
        event: Decoded progress frame

    Returns:
        New state
    """
    new = {
        **state,
        "progress": dict(state["progress"]),
        "messages": dict(state["messages"]),
        "result": dict(state["result"]),
    }
    stage = event.get("stage")
    status = event.get("status")

    if stage == "error" or status == "error":
        new["error"] = event.get("error") or event.get("message") or "Failed to process video"
        if event.get("message"):
            new["errorMessage"] = event["message"]
        if event.get("progress") is not None:
            new["partialProgress"] = event["progress"]
        new["loading"] = False
        new["finished"] = True
        return new

    if stage == "complete" and status == "success":
        fields = {k: v for k, v in event.items() if k not in _FRAME_KEYS}
        new["result"] = _merge(new["result"], fields)
        if not state["finished"]:
            new["progress"] = {name: _advance(color, GREEN) for name, color in new["progress"].items()}
        new["loading"] = False
        new["finished"] = True
        return new

    if stage in STAGES:
        if not state["finished"]:
            color = _STATUS_COLORS.get(status)
            if color:
                new["progress"][stage] = _advance(new["progress"][stage], color)
            new["messages"][stage] = event.get("message") or ""
        fields = {key: event.get(key) for key in _RESULT_FIELDS[stage]}
        new["result"] = _merge(new["result"], fields)

    return new


def fold_events(events: Iterable[Dict[str, Any]], state: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Fold a sequence of events, starting from ``state`` or a fresh one."""
    state = state if state is not None else initial_state()
    for event in events:
        state = reduce_event(state, event)
    return state
