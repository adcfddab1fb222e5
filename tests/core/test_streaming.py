import json

import pytest

from wallet_assistant.core.streaming import (
    DoneFrame,
    StreamDecoder,
    StructuredFrame,
    TextFrame,
    decode_reply,
    encode_frame,
    reply_frames,
    stream_frames,
)


def test_encode_frames():
    assert encode_frame(TextFrame("hello")) == "data: hello\n\n"
    assert encode_frame(StructuredFrame({"a": 1})) == 'data: [STRUCTURED]{"a": 1}\n\n'
    assert encode_frame(DoneFrame()) == "data: [DONE]\n\n"


def test_multiline_text_keeps_a_single_data_prefix():
    text = "Here are your 2 transfers:\n• a\n• b"
    event = encode_frame(TextFrame(text))

    assert event == f"data: {text}\n\n"
    assert event.split("\n\n")[0].removeprefix("data: ") == text
    assert StreamDecoder().feed(event) == [TextFrame(text)]


def test_encode_rejects_unknown_frames():
    with pytest.raises(TypeError):
        encode_frame("not a frame")


def test_reply_decodes_back_to_text_and_payload():
    body = "".join(encode_frame(f) for f in reply_frames("Line one\nLine two", {"answer": "ok", "n": 2}))

    reply = decode_reply([body])

    assert reply.text == "Line one\nLine two"
    assert reply.structured == {"answer": "ok", "n": 2}
    assert reply.done is True
    assert [type(f) for f in reply.frames] == [TextFrame, StructuredFrame, DoneFrame]


def test_decoder_handles_arbitrary_chunk_boundaries():
    body = "".join(encode_frame(f) for f in reply_frames("Tx 0x12345678… ✅ success.", {"status": "success"}))
    data = body.encode("utf-8")

    # one byte at a time splits the multi-byte characters too
    reply = decode_reply([data[i:i + 1] for i in range(len(data))])

    assert reply.text == "Tx 0x12345678… ✅ success."
    assert reply.structured == {"status": "success"}
    assert reply.done is True


def test_marker_and_payload_in_separate_events():
    decoder = StreamDecoder()

    assert decoder.feed("data: [STRUCTURED]\n\n") == []
    assert decoder.feed('data: {"x": 1}\n\n') == [StructuredFrame({"x": 1})]


def test_text_before_marker_is_kept():
    frames = StreamDecoder().feed('data: hi [STRUCTURED]{"x": [1, 2]}\n\n')

    assert frames == [TextFrame("hi "), StructuredFrame({"x": [1, 2]})]


def test_non_json_after_marker_is_treated_as_text():
    assert StreamDecoder().feed("data: [STRUCTURED]not json\n\n") == [TextFrame("not json")]
    assert StreamDecoder().feed("data: [STRUCTURED]{broken\n\n") == [TextFrame("{broken")]


def test_split_marker_followed_by_text():
    decoder = StreamDecoder()
    decoder.feed("data: [STRUCTURED]\n\n")

    assert decoder.feed("data: plain words\n\n") == [TextFrame("plain words")]


def test_close_flushes_unterminated_event():
    decoder = StreamDecoder()

    assert decoder.feed("data: [DONE]") == []
    assert decoder.close() == [DoneFrame()]


def test_crlf_line_endings():
    body = 'data: hi\r\n\r\ndata: [STRUCTURED]{"a": true}\r\n\r\ndata: [DONE]\r\n\r\n'

    reply = decode_reply([body])

    assert reply.text == "hi"
    assert reply.structured == {"a": True}
    assert reply.done


def test_structured_payload_is_json_serialisable():
    frame = encode_frame(StructuredFrame({"items": [{"amount": 1.5}], "note": None}))
    payload = frame[len("data: [STRUCTURED]"):].strip()

    assert json.loads(payload) == {"items": [{"amount": 1.5}], "note": None}


@pytest.mark.asyncio
async def test_stream_frames_yields_encoded_events():
    chunks = [chunk async for chunk in stream_frames(reply_frames("ok", {}))]

    assert chunks == ["data: ok\n\n", "data: [STRUCTURED]{}\n\n", "data: [DONE]\n\n"]
