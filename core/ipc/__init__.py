"""
mpv JSON IPC for remote-controlled tiles.

This module provides the message protocol, line framing and socket
transport used by RemoteTile to drive an external mpv player.
"""

from .messages import (
    MpvCommand,
    MpvReply,
    MpvEvent,
    parse_message
)

from .serialization import encode_line, LineDecoder
from .transport import MpvIpcTransport, MpvProcess, MpvProcessConfig, default_ipc_endpoint

__all__ = [
    'MpvCommand',
    'MpvReply',
    'MpvEvent',
    'parse_message',
    'encode_line',
    'LineDecoder',
    'MpvIpcTransport',
    'MpvProcess',
    'MpvProcessConfig',
    'default_ipc_endpoint'
]
