"""
Socket transport to an mpv process and a small launcher for that process.

The receive thread only decodes and enqueues; all dispatch happens when the
owner calls drain() from the main (pyglet) thread, so nothing in the
playback core runs off the event loop.

Example Usage:
    process = MpvProcess(MpvProcessConfig(ipc_endpoint="/tmp/wall-1.sock"))
    process.start()
    transport = MpvIpcTransport(process.endpoint)
    transport.connect(timeout=3.0)
    transport.send(MpvCommand(["loadfile", url, "replace"]))
"""

import logging
import os
import queue
import socket
import subprocess
import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional

from core.ipc.messages import MpvCommand, MpvMessage, parse_message
from core.ipc.serialization import LineDecoder, encode_line

logger = logging.getLogger(__name__)


def _is_windows() -> bool:
    return os.name == "nt"


def default_ipc_endpoint(name: str) -> str:
    """
    Platform-appropriate mpv IPC endpoint.

    Args:
        name: Unique endpoint name (one per tile)

    Returns:
        Named pipe path on Windows, unix socket path elsewhere
    """
    if _is_windows():
        return rf"\\.\pipe\{name}"
    return f"/tmp/{name}.sock"


class MpvIpcTransport:
    """Line-oriented JSON connection to one mpv IPC endpoint."""

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        self._sock: Optional[socket.socket] = None
        self._pipe = None
        self._stop = threading.Event()
        self._rx_thread: Optional[threading.Thread] = None
        self._rx_queue: "queue.Queue[MpvMessage]" = queue.Queue()
        self._tx_lock = threading.Lock()

    @property
    def connected(self) -> bool:
        return (self._sock is not None or self._pipe is not None) and not self._stop.is_set()

    def connect(self, timeout: float = 3.0):
        """
        Connect, retrying until the endpoint appears or timeout expires.

        Raises:
            ConnectionError: If the endpoint never accepted a connection
        """
        deadline = time.time() + timeout
        last_error: Optional[Exception] = None
        self._stop.clear()

        while time.time() < deadline:
            try:
                if _is_windows():
                    self._pipe = open(self.endpoint, "r+b", buffering=0)
                else:
                    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                    sock.connect(self.endpoint)
                    self._sock = sock
                break
            except OSError as e:
                last_error = e
                time.sleep(0.05)

        if self._sock is None and self._pipe is None:
            raise ConnectionError(f"Could not connect to mpv at {self.endpoint}: {last_error!r}")

        self._rx_thread = threading.Thread(
            target=self._rx_loop,
            name=f"mpv-ipc-rx[{self.endpoint}]",
            daemon=True
        )
        self._rx_thread.start()
        logger.info(f"MpvIpcTransport: connected to {self.endpoint}")

    def send(self, command: MpvCommand):
        """
        Send one command.

        Raises:
            ConnectionError: If not connected or the write failed
        """
        line = encode_line(command)
        with self._tx_lock:
            if not self.connected:
                raise ConnectionError(f"mpv IPC not connected ({self.endpoint})")
            try:
                if self._pipe is not None:
                    self._pipe.write(line)
                    self._pipe.flush()
                else:
                    self._sock.sendall(line)
            except OSError as e:
                raise ConnectionError(f"mpv IPC write failed ({self.endpoint}): {e}") from e
        logger.debug(f"mpv <- {command.to_dict()}")

    def drain(self, max_messages: int = 200) -> List[MpvMessage]:
        """Return queued messages without blocking (oldest first)."""
        messages = []
        for _ in range(max_messages):
            try:
                messages.append(self._rx_queue.get_nowait())
            except queue.Empty:
                break
        return messages

    def close(self):
        self._stop.set()
        if self._sock is not None:
            try:
                self._sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self._sock.close()
            self._sock = None
        if self._pipe is not None:
            self._pipe.close()
            self._pipe = None
        logger.info(f"MpvIpcTransport: closed {self.endpoint}")

    def _read_chunk(self) -> bytes:
        if self._pipe is not None:
            return self._pipe.read(4096)
        if self._sock is not None:
            return self._sock.recv(4096)
        return b""

    def _rx_loop(self):
        decoder = LineDecoder()
        try:
            while not self._stop.is_set():
                try:
                    chunk = self._read_chunk()
                except OSError as e:
                    logger.debug(f"MpvIpcTransport: read ended ({e})")
                    break
                if not chunk:
                    break
                for decoded in decoder.feed(chunk):
                    message = parse_message(decoded)
                    if message is not None:
                        self._rx_queue.put(message)
        finally:
            self._stop.set()


@dataclass
class MpvProcessConfig:
    """
    Launch options for one mpv tile process.

    Attributes:
        mpv_path: mpv executable (resolved from PATH by default)
        ipc_endpoint: IPC socket / pipe path
        extra_args: Additional command-line options (window geometry, etc.)
    """
    mpv_path: str = "mpv"
    ipc_endpoint: Optional[str] = None
    extra_args: List[str] = field(default_factory=list)


class MpvProcess:
    """An idle, paused mpv process exposing a JSON IPC endpoint."""

    def __init__(self, config: Optional[MpvProcessConfig] = None, name: str = "wallsync-mpv"):
        self.config = config or MpvProcessConfig()
        self.endpoint = self.config.ipc_endpoint or default_ipc_endpoint(name)
        self._proc: Optional[subprocess.Popen] = None

    def build_args(self) -> List[str]:
        return [
            self.config.mpv_path,
            "--idle=yes",
            "--keep-open=yes",
            "--pause=yes",
            "--force-window=yes",
            "--terminal=no",
            f"--input-ipc-server={self.endpoint}",
            *self.config.extra_args,
        ]

    def start(self):
        """
        Launch mpv.

        Raises:
            FileNotFoundError: If the mpv executable cannot be found
            OSError: If the process could not be started
        """
        if self.is_running():
            return

        if not _is_windows() and os.path.exists(self.endpoint):
            os.remove(self.endpoint)

        args = self.build_args()
        self._proc = subprocess.Popen(
            args,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        logger.info(f"MpvProcess: started pid={self._proc.pid} ({self.endpoint})")

    def is_running(self) -> bool:
        return self._proc is not None and self._proc.poll() is None

    def stop(self, timeout: float = 2.0):
        if self._proc is None:
            return
        self._proc.terminate()
        try:
            self._proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"MpvProcess: pid={self._proc.pid} did not exit, killing")
            self._proc.kill()
        self._proc = None
