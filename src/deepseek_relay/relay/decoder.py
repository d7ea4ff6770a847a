"""Incremental decoder for the upstream SSE byte stream."""

from __future__ import annotations

import codecs
import json

import structlog

from deepseek_relay.errors import FrameParseError
from deepseek_relay.relay.models import DeltaEvent, DoneEvent, UpstreamEvent, UsageEvent

logger = structlog.get_logger()

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class SSEDecoder:
    """Turns chunk-fragmented SSE bytes into upstream events.

    One decoder per upstream connection. Bytes are fed as they arrive;
    complete lines are parsed immediately and the trailing partial line is
    kept until the next chunk completes it. Once ``[DONE]`` is seen the
    decoder ignores everything that follows.
    """

    def __init__(self) -> None:
        self._text = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.done = False

    def feed(self, chunk: bytes) -> list[UpstreamEvent]:
        """Consume one chunk of bytes and return the events it completed."""
        if self.done:
            return []

        self._buffer += self._text.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()

        events: list[UpstreamEvent] = []
        for line in lines:
            events.extend(self._process_line(line))
            if self.done:
                self._buffer = ""
                break
        return events

    def finish(self) -> list[UpstreamEvent]:
        """Signal upstream end-of-stream.

        An unterminated trailing line is dropped. If ``[DONE]`` never arrived
        the stream is treated as complete anyway.
        """
        if self.done:
            return []
        self._buffer = ""
        self.done = True
        return [DoneEvent()]

    def _process_line(self, line: str) -> list[UpstreamEvent]:
        line = line.rstrip("\r")
        if not line.startswith(DATA_PREFIX):
            # keep-alive, comment, event: or blank separator
            return []

        data = line[len(DATA_PREFIX):]
        if data == DONE_SENTINEL:
            self.done = True
            return [DoneEvent()]

        try:
            return parse_frame(data)
        except FrameParseError as e:
            logger.debug("sse_frame_discarded", reason=e.message, data_preview=data[:50])
            return []


def parse_frame(data: str) -> list[UpstreamEvent]:
    """Decode the JSON payload of one ``data:`` line.

    Raises:
        FrameParseError: payload is not a JSON object.
    """
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError as e:
        raise FrameParseError(f"invalid JSON: {e.msg}") from e
    if not isinstance(parsed, dict):
        raise FrameParseError("frame is not a JSON object")

    events: list[UpstreamEvent] = []

    choices = parsed.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        delta = choices[0].get("delta")
        if not isinstance(delta, dict):
            delta = {}
        reasoning = delta.get("reasoning_content")
        answer = delta.get("content")
        reasoning = reasoning if isinstance(reasoning, str) and reasoning else None
        answer = answer if isinstance(answer, str) and answer else None
        if reasoning is not None or answer is not None:
            events.append(DeltaEvent(reasoning=reasoning, answer=answer))

    usage = parsed.get("usage")
    if isinstance(usage, dict):
        events.append(UsageEvent(tokens=usage))

    return events
