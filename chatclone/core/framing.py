"""
Turn stream framing.

A turn response body is a sequence of frames ``data: <json>\\n\\n`` where the
JSON is either ``{"content": "..."}`` (one fragment) or ``{"done": true}``.
"""

import json
from typing import Any, Dict, List

FRAME_PREFIX = "data: "


def encode_frame(payload: Dict[str, Any]) -> str:
    return f"{FRAME_PREFIX}{json.dumps(payload, ensure_ascii=False)}\n\n"


def content_frame(fragment: str) -> str:
    return encode_frame({"content": fragment})


def done_frame() -> str:
    return encode_frame({"done": True})


class FrameDecoder:
    """
    Incremental decoder for a framed body.

    Chunks may split a frame anywhere; ``feed`` buffers the incomplete tail
    and returns the payloads completed so far, in order. Lines that are not
    frames and frames with malformed JSON are skipped.
    """

    def __init__(self):
        self._buffer = ""

    def feed(self, chunk: str) -> List[Dict[str, Any]]:
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split("\n")
        return [payload for payload in map(self._parse_line, lines) if payload is not None]

    def flush(self) -> List[Dict[str, Any]]:
        """Decode whatever is left once the body has ended."""
        tail, self._buffer = self._buffer, ""
        payload = self._parse_line(tail)
        return [payload] if payload is not None else []

    @staticmethod
    def _parse_line(line: str):
        line = line.rstrip("\r")
        if not line.startswith(FRAME_PREFIX):
            return None
        try:
            payload = json.loads(line[len(FRAME_PREFIX):])
        except json.JSONDecodeError:
            return None
        return payload if isinstance(payload, dict) else None
