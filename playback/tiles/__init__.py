"""
Tile handles: the capability surface the playback core drives.
"""

from .base import TileHandle, RateControlledTile
from .tile_set import TileSet
from .rate_player import RatePlayer
from .local_tile import LocalTile
from .remote_tile import RemoteTile

__all__ = ['TileHandle', 'RateControlledTile', 'TileSet', 'RatePlayer', 'LocalTile', 'RemoteTile']
