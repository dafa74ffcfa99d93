"""
Line framing for a byte stream that arrives in arbitrary chunks.

Chunk boundaries fall wherever the writer's write() calls and our polls
happen to land, so a line (or a multi-byte UTF-8 character) can be split
across two reads. LineAssembler holds back the unterminated tail until the
rest of it arrives.
"""

from typing import List


class LineAssembler:
    """
    Turn byte chunks into complete text lines.

    Splits on "\\n" and strips a trailing "\\r" so CRLF logs read the same.
    Framing happens on bytes; decoding happens per complete line.

    Example:
        >>> lines = LineAssembler()
        >>> lines.feed(b"first\\nsec")
        ['first']
        >>> lines.feed(b"ond\\n")
        ['second']
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding
        self._pending = b""

    @property
    def pending(self) -> bytes:
        """Bytes received but not yet terminated by a newline."""
        return self._pending

    def feed(self, chunk: bytes) -> List[str]:
        """Append a chunk and return every line it completed, in order."""
        if not chunk:
            return []

        data = self._pending + chunk
        parts = data.split(b"\n")
        # The last element is whatever followed the final newline
        self._pending = parts.pop()

        lines = []
        for raw in parts:
            if raw.endswith(b"\r"):
                raw = raw[:-1]
            lines.append(raw.decode(self.encoding, errors="replace"))
        return lines

    def reset(self) -> None:
        self._pending = b""
