"""
Unit tests for the mpv JSON IPC layer (messages, line framing, launcher args).
"""

import json

import pytest
from unittest.mock import patch

from core.ipc.messages import MpvCommand, MpvEvent, MpvReply, parse_message
from core.ipc.serialization import LineDecoder, encode_line
from core.ipc.transport import MpvIpcTransport, MpvProcess, MpvProcessConfig, default_ipc_endpoint


# ==================== MESSAGES ====================

@pytest.mark.unit
def test_command_to_dict():
    command = MpvCommand(["seek", 12.5, "absolute"], request_id=7)

    assert command.to_dict() == {'command': ["seek", 12.5, "absolute"], 'request_id': 7}
    assert command.name == "seek"


@pytest.mark.unit
def test_command_without_request_id():
    assert MpvCommand(["stop"]).to_dict() == {'command': ["stop"]}


@pytest.mark.unit
def test_parse_property_change_event():
    message = parse_message({'event': 'property-change', 'id': 1, 'name': 'time-pos', 'data': 3.2})

    assert isinstance(message, MpvEvent)
    assert message.name == 'property-change'
    assert message.property_name == 'time-pos'
    assert message.data == 3.2


@pytest.mark.unit
def test_parse_end_file_event():
    message = parse_message({'event': 'end-file', 'reason': 'eof'})
    assert message.reason == 'eof'


@pytest.mark.unit
def test_parse_reply():
    message = parse_message({'request_id': 3, 'error': 'property unavailable', 'data': None})

    assert isinstance(message, MpvReply)
    assert not message.ok
    assert message.request_id == 3


@pytest.mark.unit
def test_parse_unknown_object():
    assert parse_message({'foo': 'bar'}) is None


# ==================== FRAMING ====================

@pytest.mark.unit
def test_encode_line_is_newline_terminated_json():
    line = encode_line(MpvCommand(["set_property", "pause", True]))

    assert line.endswith(b"\n")
    assert json.loads(line) == {'command': ["set_property", "pause", True]}


@pytest.mark.unit
def test_decoder_keeps_partial_lines():
    decoder = LineDecoder()

    first = decoder.feed(b'{"event": "pause"}\n{"event": "unp')
    assert first == [{'event': 'pause'}]
    assert decoder.pending_bytes > 0

    second = decoder.feed(b'ause"}\n')
    assert second == [{'event': 'unpause'}]
    assert decoder.pending_bytes == 0


@pytest.mark.unit
def test_decoder_skips_blank_and_malformed_lines():
    decoder = LineDecoder()

    messages = decoder.feed(b'\n{not json}\n[1, 2]\n{"request_id": 1, "error": "success"}\n')

    assert messages == [{'request_id': 1, 'error': 'success'}]


@pytest.mark.unit
def test_decoder_reset():
    decoder = LineDecoder()
    decoder.feed(b'{"event"')
    decoder.reset()
    assert decoder.pending_bytes == 0


# ==================== TRANSPORT / PROCESS ====================

@pytest.mark.unit
def test_send_when_disconnected_raises():
    transport = MpvIpcTransport("/tmp/wallsync-test-missing.sock")

    assert not transport.connected
    with pytest.raises(ConnectionError):
        transport.send(MpvCommand(["stop"]))


@pytest.mark.unit
def test_drain_empty_queue():
    assert MpvIpcTransport("/tmp/wallsync-test.sock").drain() == []


@pytest.mark.unit
def test_default_endpoint_per_platform():
    with patch("core.ipc.transport._is_windows", return_value=False):
        assert default_ipc_endpoint("tile-1") == "/tmp/tile-1.sock"
    with patch("core.ipc.transport._is_windows", return_value=True):
        assert default_ipc_endpoint("tile-1") == r"\\.\pipe\tile-1"


@pytest.mark.unit
def test_process_args_start_idle_paused_with_ipc():
    process = MpvProcess(MpvProcessConfig(ipc_endpoint="/tmp/wall-2.sock",
                                          extra_args=["--geometry=960x540+0+0"]))

    args = process.build_args()

    assert args[0] == "mpv"
    assert "--idle=yes" in args
    assert "--pause=yes" in args
    assert "--input-ipc-server=/tmp/wall-2.sock" in args
    assert args[-1] == "--geometry=960x540+0+0"
    assert not process.is_running()


@pytest.mark.unit
def test_process_start_missing_executable_propagates(tmp_path):
    config = MpvProcessConfig(mpv_path=str(tmp_path / "no-such-mpv"),
                              ipc_endpoint=str(tmp_path / "ipc.sock"))
    process = MpvProcess(config)

    with patch("core.ipc.transport._is_windows", return_value=False):
        with pytest.raises(FileNotFoundError):
            process.start()
