"""
Ordered, wholesale-replaced collection of tile handles.
"""

from typing import Iterator, Optional, Sequence, Tuple

from playback.tiles.base import TileHandle
from playback.types import SourceKind


class TileSet:
    """
    Tile handles for one source-kind activation.

    Index 0 is the master (reference clock); indices >= 1 are slaves.
    A slot may hold None while its tile is still mounting. The sequence is
    frozen at construction: switching sources or kinds builds a new TileSet.
    """

    def __init__(self, kind: SourceKind, handles: Sequence[Optional[TileHandle]]):
        if not handles:
            raise ValueError("TileSet needs at least one tile")

        for i, handle in enumerate(handles):
            if handle is not None and handle.index != i:
                raise ValueError(f"Handle bound to slot {handle.index} placed at position {i}")

        self.kind = kind
        self._handles: Tuple[Optional[TileHandle], ...] = tuple(handles)

    @property
    def master(self) -> Optional[TileHandle]:
        return self._handles[0]

    def slaves(self) -> Iterator[Tuple[int, Optional[TileHandle]]]:
        """Yield (index, handle) for every slave slot."""
        for index in range(1, len(self._handles)):
            yield index, self._handles[index]

    def live_handles(self) -> Iterator[TileHandle]:
        for handle in self._handles:
            if handle is not None and handle.is_live:
                yield handle

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[Optional[TileHandle]]:
        return iter(self._handles)

    def __getitem__(self, index: int) -> Optional[TileHandle]:
        return self._handles[index]

    def __repr__(self):
        mounted = sum(1 for h in self._handles if h is not None)
        return f"TileSet(kind={self.kind.value}, tiles={len(self._handles)}, mounted={mounted})"
