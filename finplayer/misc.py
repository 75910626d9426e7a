"""Small helpers: time and size formatting, hex and base64 encoding, IPC."""

from __future__ import annotations

import base64
import logging
import secrets
import socket
import sys

logger = logging.getLogger(__name__)


def _pad(num: int, length: int = 2) -> str:
    return str(num).zfill(length)


def sec_to_time(seconds: int) -> str:
    """Format a number of seconds as ``MM:SS`` or ``HH:MM:SS``."""
    if seconds < 0:
        raise ValueError("seconds must not be negative")
    hour = seconds // 3600
    minute = seconds // 60 % 60
    sec = seconds % 60
    if hour == 0:
        return f"{_pad(minute)}:{_pad(sec)}"
    return f"{_pad(hour)}:{_pad(minute)}:{_pad(sec)}"


def format_size(size: int) -> str:
    """Format a byte count as KB, MB or GB; zero becomes ``-``."""
    if size < 0:
        raise ValueError("size must not be negative")
    if size == 0:
        return "-"
    if size < (1 << 20):
        return f"{size // 1024}KB"
    if size < (1 << 30):
        return f"{(size >> 10) / 1024.0:.2f}MB"
    return f"{(size >> 20) / 1024.0:.2f}GB"


def rand_hex(length: int) -> str:
    """Return ``length`` random bytes as lower-case hex."""
    if length < 0:
        raise ValueError("length must not be negative")
    return secrets.token_hex(length)


def hex_encode(data: bytes) -> str:
    """Encode bytes as lower-case hex."""
    return bytes(data).hex()


def split(data: str, sep: str = ",") -> list[str]:
    """Split ``data`` on ``sep``; a trailing separator yields no empty field."""
    if not data:
        return []
    parts = data.split(sep)
    if parts[-1] == "":
        parts.pop()
    return parts


def base64_encode(data: str | bytes) -> str:
    """Standard base64 with ``=`` padding."""
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    return base64.b64encode(raw).decode("ascii")


def send_ipc(sock: str, payload: str | bytes) -> bool:
    """Send ``payload`` to a running instance listening on ``sock``.

    Returns True when a listener was reached, False otherwise.
    """
    data = payload.encode("utf-8") if isinstance(payload, str) else bytes(payload)

    if sys.platform == "win32":
        try:
            pipe = open(sock, "wb", buffering=0)
        except OSError:
            return False
        with pipe:
            try:
                pipe.write(data)
            except OSError as exc:
                logger.warning("sendIPC `%r` failed: %s", payload, exc)
        return True

    family = getattr(socket, "AF_UNIX", None)
    if family is None:
        return False
    try:
        conn = socket.socket(family, socket.SOCK_STREAM)
    except OSError:
        return False
    with conn:
        try:
            conn.connect(sock)
        except OSError:
            return False
        try:
            conn.sendall(data)
        except OSError as exc:
            logger.warning("sendIPC `%r` failed: %s", payload, exc)
    return True