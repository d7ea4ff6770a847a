"""Tests for the incremental SSE decoder."""

import pytest

from conftest import delta_chunk, sse_frame
from deepseek_relay.errors import FrameParseError
from deepseek_relay.relay.decoder import SSEDecoder, parse_frame
from deepseek_relay.relay.models import DeltaEvent, DoneEvent, UsageEvent


USAGE = {"prompt_tokens": 5, "completion_tokens": 7, "total_tokens": 12}

# Reasoning, answer (with multi-byte text), keep-alive comment, usage, [DONE]
STREAM = b"".join([
    sse_frame(delta_chunk(reasoning="Let me think")),
    b": keep-alive\n\n",
    sse_frame(delta_chunk(reasoning=" 关于问题")),
    sse_frame(delta_chunk(content="你好")),
    sse_frame(delta_chunk(content=", world")),
    sse_frame(delta_chunk(content="", usage=USAGE)),
    b"data: [DONE]\n\n",
])

EXPECTED = [
    DeltaEvent(reasoning="Let me think"),
    DeltaEvent(reasoning=" 关于问题"),
    DeltaEvent(answer="你好"),
    DeltaEvent(answer=", world"),
    UsageEvent(tokens=USAGE),
    DoneEvent(),
]


def _decode(chunks: list[bytes]) -> list:
    decoder = SSEDecoder()
    events = []
    for chunk in chunks:
        events.extend(decoder.feed(chunk))
    events.extend(decoder.finish())
    return events


def test_decodes_whole_stream():
    assert _decode([STREAM]) == EXPECTED


def test_chunk_boundary_invariance_two_chunks():
    """Every split point, including inside multi-byte characters, decodes the same."""
    for i in range(len(STREAM) + 1):
        assert _decode([STREAM[:i], STREAM[i:]]) == EXPECTED, f"split at byte {i}"


def test_chunk_boundary_invariance_single_bytes():
    chunks = [STREAM[i:i + 1] for i in range(len(STREAM))]
    assert _decode(chunks) == EXPECTED


def test_non_data_lines_produce_no_events():
    decoder = SSEDecoder()

    assert decoder.feed(b"\n") == []
    assert decoder.feed(b": ping\n") == []
    assert decoder.feed(b"event: message\n") == []
    assert decoder.feed(b"data:no-space\n") == []

    # next real frame still parses
    events = decoder.feed(sse_frame(delta_chunk(content="ok")))
    assert events == [DeltaEvent(answer="ok")]


def test_done_stops_processing_trailing_bytes():
    decoder = SSEDecoder()
    data = (
        sse_frame(delta_chunk(content="A"))
        + b"data: [DONE]\n\n"
        + sse_frame(delta_chunk(content="ignored"))
    )

    events = decoder.feed(data)

    assert events == [DeltaEvent(answer="A"), DoneEvent()]
    assert decoder.done is True
    assert decoder.feed(sse_frame(delta_chunk(content="later"))) == []
    assert decoder.finish() == []


def test_malformed_json_is_skipped():
    decoder = SSEDecoder()
    data = (
        b"data: {not json\n\n"
        + b"data: [1, 2]\n\n"
        + sse_frame(delta_chunk(content="after"))
    )

    assert decoder.feed(data) == [DeltaEvent(answer="after")]


def test_crlf_line_endings():
    data = b'data: {"choices":[{"delta":{"content":"x"}}]}\r\n\r\ndata: [DONE]\r\n\r\n'
    assert _decode([data]) == [DeltaEvent(answer="x"), DoneEvent()]


def test_end_of_stream_without_done_is_implicit_completion():
    decoder = SSEDecoder()
    events = decoder.feed(sse_frame(delta_chunk(content="partial")))

    assert events == [DeltaEvent(answer="partial")]
    assert decoder.finish() == [DoneEvent()]
    assert decoder.done is True


def test_unterminated_trailing_line_is_dropped_at_finish():
    decoder = SSEDecoder()
    decoder.feed(b'data: {"choices":[{"delta":{"content":"cut')

    assert decoder.finish() == [DoneEvent()]


def test_frame_with_reasoning_and_content_yields_single_delta():
    events = parse_frame('{"choices":[{"delta":{"reasoning_content":"r","content":"c"}}]}')
    assert events == [DeltaEvent(reasoning="r", answer="c")]


def test_frame_without_choices_or_usage_yields_nothing():
    assert parse_frame('{"id":"x","choices":[]}') == []
    assert parse_frame('{"choices":[{"delta":{"role":"assistant","content":null}}]}') == []


def test_parse_frame_raises_on_invalid_json():
    with pytest.raises(FrameParseError):
        parse_frame("{oops")
