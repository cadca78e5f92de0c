"""
Bounded play queue feeding the director the next source to load.

Pure data structure: no timers, no tiles. The pending list and the
"currently playing" slot are only coupled through dequeue_next(); removing
or reordering pending items never touches currently_playing.

Invalid ids and out-of-range indices are no-ops rather than errors, since
UI double-clicks routinely produce them.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from playback.types import SourceKind

logger = logging.getLogger(__name__)

MAX_QUEUE_SIZE = 15


@dataclass
class QueueItem:
    """
    One pending source.

    Attributes:
        kind: Local file or remote player source
        display_name: Label shown to the operator
        source_ref: Path / URL handed to TileHandle.load()
        id: Unique id generated on enqueue
        enqueued_at: Epoch seconds when the item was enqueued
    """
    kind: SourceKind
    display_name: str
    source_ref: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    enqueued_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'kind': self.kind.value,
            'display_name': self.display_name,
            'source_ref': self.source_ref,
            'enqueued_at': self.enqueued_at
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'QueueItem':
        """Create QueueItem instance from dictionary."""
        return cls(
            kind=SourceKind(data['kind']),
            display_name=data['display_name'],
            source_ref=data['source_ref'],
            id=data.get('id', str(uuid.uuid4())),
            enqueued_at=data.get('enqueued_at', time.time())
        )


class PlayQueue:
    """Ordered pending list (capped at max_size) plus a currently-playing slot."""

    def __init__(self, max_size: int = MAX_QUEUE_SIZE):
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self.max_size = max_size
        self._items: List[QueueItem] = []
        self._currently_playing: Optional[QueueItem] = None

    # ==================== READ ====================

    @property
    def queue(self) -> Tuple[QueueItem, ...]:
        """Snapshot of pending items, head first."""
        return tuple(self._items)

    @property
    def currently_playing(self) -> Optional[QueueItem]:
        return self._currently_playing

    def __len__(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def is_full(self) -> bool:
        return len(self._items) >= self.max_size

    def index_of(self, item_id: str) -> int:
        """Position of item_id, or -1 if absent."""
        for i, item in enumerate(self._items):
            if item.id == item_id:
                return i
        return -1

    def peek_next(self) -> Optional[QueueItem]:
        """Head of the queue without removing it."""
        return self._items[0] if self._items else None

    # ==================== MUTATE ====================

    def enqueue(self, kind: SourceKind, display_name: str, source_ref: str) -> bool:
        """
        Append a new item with a fresh id and timestamp.

        Args:
            kind: Source kind
            display_name: Operator-facing label
            source_ref: Path or URL

        Returns:
            False (queue untouched) when the queue is already full
        """
        if self.is_full():
            logger.warning(f"PlayQueue: full ({self.max_size} items), rejected '{display_name}'")
            return False

        item = QueueItem(kind=kind, display_name=display_name, source_ref=source_ref)
        self._items.append(item)
        logger.info(f"PlayQueue: enqueued '{display_name}' ({len(self._items)}/{self.max_size})")
        return True

    def remove(self, item_id: str):
        """Remove item_id if present."""
        index = self.index_of(item_id)
        if index == -1:
            return
        removed = self._items.pop(index)
        logger.info(f"PlayQueue: removed '{removed.display_name}'")

    def move_up(self, item_id: str):
        """Swap item_id with the item before it (no-op at the head)."""
        index = self.index_of(item_id)
        if index <= 0:
            return
        self._items[index - 1], self._items[index] = self._items[index], self._items[index - 1]

    def move_down(self, item_id: str):
        """Swap item_id with the item after it (no-op at the tail)."""
        index = self.index_of(item_id)
        if index == -1 or index >= len(self._items) - 1:
            return
        self._items[index], self._items[index + 1] = self._items[index + 1], self._items[index]

    def reorder(self, from_index: int, to_index: int):
        """
        Move the item at from_index to to_index, shifting the items between.

        No-op if either index is out of range or both are equal.
        """
        count = len(self._items)
        if from_index == to_index:
            return
        if not (0 <= from_index < count and 0 <= to_index < count):
            return
        item = self._items.pop(from_index)
        self._items.insert(to_index, item)

    def dequeue_next(self) -> Optional[QueueItem]:
        """
        Pop the head and make it the currently playing item.

        Returns:
            The dequeued item, or None (currently_playing unchanged) if empty
        """
        if not self._items:
            return None
        item = self._items.pop(0)
        self._currently_playing = item
        logger.info(f"PlayQueue: now playing '{item.display_name}' ({len(self._items)} left)")
        return item

    def to_dict(self) -> Dict[str, Any]:
        return {
            'max_size': self.max_size,
            'queue': [item.to_dict() for item in self._items],
            'currently_playing': (self._currently_playing.to_dict()
                                  if self._currently_playing else None)
        }


def describe_remote_source(text: str) -> Tuple[str, str]:
    """
    Normalize operator input for a remote source.

    Accepts a bare YouTube video id, a youtube.com watch URL or a youtu.be
    short link. Any other URL is passed through unchanged.

    Args:
        text: Raw operator input

    Returns:
        (source_ref, display_name)

    Raises:
        ValueError: If text is blank

    Example:
        >>> describe_remote_source("https://youtu.be/jt7AF2RCMhg")
        ('https://www.youtube.com/watch?v=jt7AF2RCMhg', 'YouTube: jt7AF2RCMhg')
    """
    raw = text.strip()
    if not raw:
        raise ValueError("Remote source is empty")

    parsed = urlparse(raw)
    if not parsed.scheme or not parsed.netloc:
        video_id = raw
    elif 'youtube.com' in parsed.netloc:
        video_id = parse_qs(parsed.query).get('v', [''])[0]
        if not video_id:
            return raw, raw
    elif 'youtu.be' in parsed.netloc:
        video_id = parsed.path.lstrip('/')
        if not video_id:
            return raw, raw
    else:
        return raw, raw

    return f"https://www.youtube.com/watch?v={video_id}", f"YouTube: {video_id}"
