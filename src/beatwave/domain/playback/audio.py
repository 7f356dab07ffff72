"""
Audio output backends.

The playback session drives exactly one backend. ``MpvAudioBackend`` talks to
an mpv process over its JSON IPC socket; blocking socket calls run in a
worker thread. ``SilentAudioBackend`` keeps position bookkeeping without
producing sound, for headless runs.
"""

import asyncio
import json
import os
import socket
import subprocess
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from beatwave.core.config import PlayerConfig

SOCKET_WAIT_SECONDS = 5.0
METADATA_WAIT_SECONDS = 2.0
POLL_INTERVAL = 0.05
# Minimum playback time before a stream may report completion
MIN_PLAYBACK_TIME = 3.0


class AudioError(Exception):
    """Raised when the audio backend cannot load or control a stream."""

    pass


class AudioBackend(ABC):
    """A single audio stream."""

    @abstractmethod
    async def load(self, url: str) -> None:
        """Replace the current stream with ``url`` and start it.

        Raises:
            AudioError: If the stream could not be started
        """

    @abstractmethod
    async def pause(self) -> None: ...

    @abstractmethod
    async def resume(self) -> None: ...

    @abstractmethod
    async def seek(self, seconds: float) -> None: ...

    @abstractmethod
    async def stop(self) -> None: ...

    @abstractmethod
    async def position(self) -> float: ...

    @abstractmethod
    async def duration(self) -> Optional[float]: ...

    @abstractmethod
    async def finished(self) -> bool:
        """True once the stream has played to its end."""

    async def close(self) -> None:
        await self.stop()


# MPV JSON IPC


def check_mpv_available() -> bool:
    """Check if MPV is available on the system."""
    try:
        result = subprocess.run(
            ["mpv", "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


def _ipc_request(socket_path: Optional[str], command: list[Any]) -> Optional[dict]:
    if not socket_path or not os.path.exists(socket_path):
        return None
    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
            sock.settimeout(2.0)
            sock.connect(socket_path)
            sock.sendall((json.dumps({"command": command}) + "\n").encode("utf-8"))
            response = sock.recv(4096).decode("utf-8").strip()
    except OSError as e:
        logger.debug(f"mpv IPC {command[0]} failed: {e}")
        return None
    # mpv may interleave event lines; the reply is the one carrying "error"
    for line in response.splitlines():
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            continue
        if "error" in data:
            return data
    return None


def send_mpv_command(socket_path: Optional[str], *command: Any) -> bool:
    """Send a JSON IPC command to MPV. True if mpv acknowledged it."""
    reply = _ipc_request(socket_path, list(command))
    return reply is not None and reply.get("error") == "success"


def get_mpv_property(socket_path: Optional[str], name: str) -> Any:
    """Get a property value from MPV, or None."""
    reply = _ipc_request(socket_path, ["get_property", name])
    if reply is not None and reply.get("error") == "success":
        return reply.get("data")
    return None


class MpvAudioBackend(AudioBackend):
    """mpv child process controlled through ``--input-ipc-server``."""

    def __init__(self, config: Optional[PlayerConfig] = None):
        self.config = config or PlayerConfig()
        self.socket_path: Optional[str] = None
        self.process: Optional[subprocess.Popen] = None
        self.started_at: Optional[float] = None

    def _spawn(self) -> None:
        if self.config.mpv_socket_path:
            socket_path = self.config.mpv_socket_path
        else:
            socket_path = str(Path(tempfile.gettempdir()) / f"beatwave-mpv-{os.getpid()}")
        if os.path.exists(socket_path):
            os.unlink(socket_path)

        logger.info(f"Starting mpv with socket: {socket_path}")
        try:
            self.process = subprocess.Popen(
                [
                    "mpv",
                    "--idle=yes",
                    "--no-video",
                    "--no-terminal",
                    f"--input-ipc-server={socket_path}",
                    f"--volume={self.config.volume}",
                    "--keep-open=yes",
                ],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
            )
        except (subprocess.SubprocessError, OSError) as e:
            raise AudioError(f"Failed to start mpv: {e}") from e

        deadline = time.time() + SOCKET_WAIT_SECONDS
        while not os.path.exists(socket_path):
            if time.time() > deadline:
                self.process.kill()
                self.process = None
                raise AudioError(f"mpv socket not created after {SOCKET_WAIT_SECONDS}s")
            time.sleep(0.1)
        self.socket_path = socket_path

    def _is_running(self) -> bool:
        return self.process is not None and self.process.poll() is None

    def _load(self, url: str) -> None:
        if not self._is_running():
            self._spawn()
        if not send_mpv_command(self.socket_path, "loadfile", url, "replace"):
            raise AudioError(f"mpv refused to load {url}")

        # Wait for the stream to report a duration before declaring it started
        waited = 0.0
        while waited < METADATA_WAIT_SECONDS:
            duration = get_mpv_property(self.socket_path, "duration")
            if duration and duration > 0:
                break
            time.sleep(POLL_INTERVAL)
            waited += POLL_INTERVAL
        else:
            logger.warning(f"No duration reported for {url} after {METADATA_WAIT_SECONDS}s")

        send_mpv_command(self.socket_path, "set_property", "pause", False)
        self.started_at = time.time()

    async def load(self, url: str) -> None:
        await asyncio.to_thread(self._load, url)

    async def pause(self) -> None:
        await asyncio.to_thread(
            send_mpv_command, self.socket_path, "set_property", "pause", True
        )

    async def resume(self) -> None:
        await asyncio.to_thread(
            send_mpv_command, self.socket_path, "set_property", "pause", False
        )

    async def seek(self, seconds: float) -> None:
        await asyncio.to_thread(
            send_mpv_command, self.socket_path, "seek", seconds, "absolute"
        )

    async def stop(self) -> None:
        if self._is_running():
            await asyncio.to_thread(send_mpv_command, self.socket_path, "stop")
        self.started_at = None

    async def position(self) -> float:
        value = await asyncio.to_thread(get_mpv_property, self.socket_path, "time-pos")
        return float(value or 0.0)

    async def duration(self) -> Optional[float]:
        value = await asyncio.to_thread(get_mpv_property, self.socket_path, "duration")
        return float(value) if value else None

    async def finished(self) -> bool:
        if self.started_at is None or time.time() - self.started_at < MIN_PLAYBACK_TIME:
            return False
        eof = await asyncio.to_thread(get_mpv_property, self.socket_path, "eof-reached")
        return eof is True

    async def close(self) -> None:
        await self.stop()
        if self.process is not None:
            try:
                self.process.kill()
                self.process.wait(timeout=2.0)
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.warning(f"mpv did not exit cleanly: {e}")
            self.process = None
        if self.socket_path and os.path.exists(self.socket_path):
            os.unlink(self.socket_path)


class SilentAudioBackend(AudioBackend):
    """Wall-clock stream emulation with a fixed nominal duration."""

    def __init__(self, nominal_duration: float = 180.0, clock=time.monotonic):
        self.nominal_duration = nominal_duration
        self.clock = clock
        self.url: Optional[str] = None
        self._offset = 0.0
        self._resumed_at: Optional[float] = None

    async def load(self, url: str) -> None:
        self.url = url
        self._offset = 0.0
        self._resumed_at = self.clock()

    async def pause(self) -> None:
        self._offset = await self.position()
        self._resumed_at = None

    async def resume(self) -> None:
        if self.url is not None and self._resumed_at is None:
            self._resumed_at = self.clock()

    async def seek(self, seconds: float) -> None:
        self._offset = max(0.0, min(seconds, self.nominal_duration))
        if self._resumed_at is not None:
            self._resumed_at = self.clock()

    async def stop(self) -> None:
        self.url = None
        self._offset = 0.0
        self._resumed_at = None

    async def position(self) -> float:
        elapsed = self.clock() - self._resumed_at if self._resumed_at is not None else 0.0
        return min(self._offset + elapsed, self.nominal_duration)

    async def duration(self) -> Optional[float]:
        return self.nominal_duration if self.url is not None else None

    async def finished(self) -> bool:
        return self.url is not None and await self.position() >= self.nominal_duration
