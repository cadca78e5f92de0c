"""
Line framing for the mpv JSON IPC stream.

Outgoing commands are encoded one JSON object per line; the incoming byte
stream is split back into objects by LineDecoder, which keeps partial lines
between reads.
"""

import json
import logging
from typing import Any, Dict, List

from core.ipc.messages import MpvCommand

logger = logging.getLogger(__name__)


def encode_line(command: MpvCommand) -> bytes:
    """
    Encode one command as a UTF-8 JSON line.

    Args:
        command: Command to send

    Returns:
        Bytes terminated by a newline
    """
    return (json.dumps(command.to_dict()) + "\n").encode("utf-8")


class LineDecoder:
    """Incremental decoder: feed raw bytes, get back complete JSON objects."""

    def __init__(self):
        self._buffer = b""

    @property
    def pending_bytes(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: bytes) -> List[Dict[str, Any]]:
        """
        Append a chunk and return every complete object it finished.

        Blank lines, malformed JSON and non-object values are skipped.

        Args:
            chunk: Raw bytes read from the socket

        Returns:
            Decoded objects in arrival order
        """
        self._buffer += chunk
        messages = []

        while b"\n" in self._buffer:
            line, self._buffer = self._buffer.split(b"\n", 1)
            line = line.strip()
            if not line:
                continue
            try:
                decoded = json.loads(line.decode("utf-8", errors="replace"))
            except ValueError as e:
                logger.debug(f"LineDecoder: skipping malformed line ({e}): {line[:80]!r}")
                continue
            if isinstance(decoded, dict):
                messages.append(decoded)

        return messages

    def reset(self):
        self._buffer = b""
