"""Wire format for chat replies.

Every reply is three events in a text/event-stream style body::

    data: <human readable text>\\n\\n
    data: [STRUCTURED]<json payload>\\n\\n
    data: [DONE]\\n\\n

Multi-line text goes out as-is under a single ``data: `` prefix; events are
delimited by the blank line alone. The decoder accepts the structured marker and
its JSON either in one event or split over two, and only parses candidates
that start with ``{`` or ``[``.
"""

from __future__ import annotations

import codecs
import json
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Iterable, List, Optional, Union

from fastapi.encoders import jsonable_encoder

STRUCTURED_MARKER = "[STRUCTURED]"
DONE_SENTINEL = "[DONE]"
MEDIA_TYPE = "text/event-stream"


@dataclass(frozen=True)
class TextFrame:
    text: str


@dataclass(frozen=True)
class StructuredFrame:
    payload: Any


@dataclass(frozen=True)
class DoneFrame:
    pass


Frame = Union[TextFrame, StructuredFrame, DoneFrame]


def _event(data: str) -> str:
    return f"data: {data}\n\n"


def encode_frame(frame: Frame) -> str:
    if isinstance(frame, TextFrame):
        return _event(frame.text)
    if isinstance(frame, StructuredFrame):
        body = json.dumps(jsonable_encoder(frame.payload), ensure_ascii=False)
        return _event(f"{STRUCTURED_MARKER}{body}")
    if isinstance(frame, DoneFrame):
        return _event(DONE_SENTINEL)
    raise TypeError(f"Unknown frame type: {type(frame).__name__}")


def reply_frames(text: str, structured: Any) -> List[Frame]:
    return [TextFrame(text), StructuredFrame(structured), DoneFrame()]


async def stream_frames(frames: Iterable[Frame]) -> AsyncIterator[str]:
    for frame in frames:
        yield encode_frame(frame)


_NOT_JSON = object()


def _parse_json_candidate(text: str) -> Any:
    candidate = text.strip()
    if not candidate or candidate[0] not in "{[":
        return _NOT_JSON
    try:
        return json.loads(candidate)
    except ValueError:
        return _NOT_JSON


class StreamDecoder:
    """Incremental decoder; chunk boundaries may fall anywhere."""

    def __init__(self) -> None:
        self._buffer = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._expecting_structured = False

    def feed(self, chunk: Union[str, bytes]) -> List[Frame]:
        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        self._buffer += chunk.replace("\r\n", "\n")

        frames: List[Frame] = []
        while "\n\n" in self._buffer:
            event, self._buffer = self._buffer.split("\n\n", 1)
            frames.extend(self._decode_event(event))
        return frames

    def close(self) -> List[Frame]:
        self._buffer += self._utf8.decode(b"", final=True)
        remainder, self._buffer = self._buffer, ""
        return self._decode_event(remainder) if remainder.strip() else []

    def _decode_event(self, event: str) -> List[Frame]:
        event = event.lstrip("\n")
        if not event.startswith("data:"):
            return []
        data = event[5:]
        if data.startswith(" "):
            data = data[1:]

        if self._expecting_structured:
            self._expecting_structured = False
            payload = _parse_json_candidate(data)
            if payload is not _NOT_JSON:
                return [StructuredFrame(payload)]

        if data.strip() == DONE_SENTINEL:
            return [DoneFrame()]

        index = data.find(STRUCTURED_MARKER)
        if index == -1:
            return [TextFrame(data)] if data.strip() else []

        frames: List[Frame] = []
        before = data[:index]
        if before.strip():
            frames.append(TextFrame(before))
        rest = data[index + len(STRUCTURED_MARKER):]
        if not rest.strip():
            self._expecting_structured = True
            return frames

        payload = _parse_json_candidate(rest)
        if payload is _NOT_JSON:
            frames.append(TextFrame(rest.strip()))
        else:
            frames.append(StructuredFrame(payload))
        return frames


@dataclass
class DecodedReply:
    text: str = ""
    structured: Optional[Any] = None
    done: bool = False
    frames: List[Frame] = field(default_factory=list)

    def add(self, frame: Frame) -> None:
        self.frames.append(frame)
        if isinstance(frame, TextFrame):
            self.text += frame.text
        elif isinstance(frame, StructuredFrame):
            self.structured = frame.payload
        elif isinstance(frame, DoneFrame):
            self.done = True


def decode_reply(chunks: Iterable[Union[str, bytes]]) -> DecodedReply:
    """Decode a complete body (or its chunks) into text + structured payload."""

    decoder = StreamDecoder()
    reply = DecodedReply()
    for chunk in chunks:
        for frame in decoder.feed(chunk):
            reply.add(frame)
    for frame in decoder.close():
        reply.add(frame)
    return reply


__all__ = [
    "STRUCTURED_MARKER",
    "DONE_SENTINEL",
    "MEDIA_TYPE",
    "TextFrame",
    "StructuredFrame",
    "DoneFrame",
    "Frame",
    "encode_frame",
    "reply_frames",
    "stream_frames",
    "StreamDecoder",
    "DecodedReply",
    "decode_reply",
]
