"""
Message structures for the mpv JSON IPC protocol.

mpv speaks newline-delimited JSON over its --input-ipc-server socket:
- commands we send:   {"command": ["seek", 12.5, "absolute"], "request_id": 7}
- replies we receive: {"request_id": 7, "error": "success", "data": null}
- events we receive:  {"event": "property-change", "id": 1, "name": "time-pos", "data": 12.51}
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class MpvCommand:
    """
    Command sent to mpv.

    Attributes:
        command: Command name followed by its arguments
        request_id: Optional id echoed back in the reply
    """
    command: List[Any]
    request_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize command to mpv's JSON shape."""
        payload: Dict[str, Any] = {'command': list(self.command)}
        if self.request_id is not None:
            payload['request_id'] = self.request_id
        return payload

    @property
    def name(self) -> str:
        return str(self.command[0]) if self.command else ''


@dataclass
class MpvReply:
    """Reply to a command that carried a request_id."""
    request_id: Optional[int]
    error: str = 'success'
    data: Any = None

    @property
    def ok(self) -> bool:
        return self.error == 'success'

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'MpvReply':
        return cls(
            request_id=d.get('request_id'),
            error=d.get('error', 'success'),
            data=d.get('data')
        )


@dataclass
class MpvEvent:
    """
    Asynchronous event pushed by mpv.

    Attributes:
        name: Event name ('property-change', 'end-file', 'playback-restart', ...)
        fields: Remaining keys of the event object
    """
    name: str
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def property_name(self) -> Optional[str]:
        """Observed property name for property-change events."""
        return self.fields.get('name')

    @property
    def data(self) -> Any:
        return self.fields.get('data')

    @property
    def reason(self) -> Optional[str]:
        """end-file reason ('eof', 'stop', 'quit', 'error', 'redirect')."""
        return self.fields.get('reason')

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'MpvEvent':
        fields = {k: v for k, v in d.items() if k != 'event'}
        return cls(name=d['event'], fields=fields)


MpvMessage = Union[MpvReply, MpvEvent]


def parse_message(d: Dict[str, Any]) -> Optional[MpvMessage]:
    """
    Turn a decoded JSON object from mpv into a message.

    Args:
        d: One decoded line

    Returns:
        MpvEvent, MpvReply, or None for objects that are neither
    """
    if 'event' in d:
        return MpvEvent.from_dict(d)
    if 'request_id' in d or 'error' in d:
        return MpvReply.from_dict(d)
    return None
