"""
Video wall configuration: sync tuning plus session-level policy.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class SyncConfig:
    """
    Live drift-correction settings.

    Engines keep a reference to this object and read it on every pass, so
    the host may change fields at any time.

    Attributes:
        gap_millis: Target stagger between consecutive tiles (0 = perfect sync)
        is_sync_enabled: Master switch for corrective action
    """
    gap_millis: float = 0.0
    is_sync_enabled: bool = True

    def validate(self) -> tuple[bool, List[str]]:
        """
        Validate sync settings.

        Returns:
            Tuple of (valid: bool, error_messages: List[str])
        """
        errors = []
        if self.gap_millis < 0:
            errors.append("Gap must be non-negative")
        return (len(errors) == 0, errors)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'gap_millis': self.gap_millis,
            'is_sync_enabled': self.is_sync_enabled
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SyncConfig':
        """Create SyncConfig instance from dictionary."""
        return cls(
            gap_millis=float(data.get('gap_millis', 0.0)),
            is_sync_enabled=bool(data.get('is_sync_enabled', True))
        )


@dataclass
class WallConfig:
    """
    Session configuration for one video wall.

    Attributes:
        tile_count: Number of tiles (index 0 is the master)
        buffering_timeout: Seconds before the buffering barrier is forced open
        muted: Whether tiles start muted
        auto_advance: Play the next queued item when the master reaches its end
        loop_queue: Re-enqueue played items at the tail / restart the current
                    source when the queue runs dry
        sync: Drift-correction settings
    """
    tile_count: int = 4
    buffering_timeout: float = 5.0
    muted: bool = True
    auto_advance: bool = True
    loop_queue: bool = False
    sync: SyncConfig = field(default_factory=SyncConfig)

    def validate(self) -> tuple[bool, List[str]]:
        """
        Validate wall configuration.

        Returns:
            Tuple of (valid: bool, error_messages: List[str])
        """
        errors = []

        if self.tile_count < 1:
            errors.append("Wall needs at least one tile")

        if self.buffering_timeout < 0:
            errors.append("Buffering timeout must be non-negative")

        _, sync_errors = self.sync.validate()
        errors.extend(sync_errors)

        return (len(errors) == 0, errors)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'tile_count': self.tile_count,
            'buffering_timeout': self.buffering_timeout,
            'muted': self.muted,
            'auto_advance': self.auto_advance,
            'loop_queue': self.loop_queue,
            'sync': self.sync.to_dict()
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'WallConfig':
        """Create WallConfig instance from dictionary."""
        return cls(
            tile_count=int(data.get('tile_count', 4)),
            buffering_timeout=float(data.get('buffering_timeout', 5.0)),
            muted=bool(data.get('muted', True)),
            auto_advance=bool(data.get('auto_advance', True)),
            loop_queue=bool(data.get('loop_queue', False)),
            sync=SyncConfig.from_dict(data.get('sync', {}))
        )
