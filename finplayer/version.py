"""Application identity, platform detection and release checks."""

from __future__ import annotations

import json
import logging
import os
import socket
import sys
import urllib.request

logger = logging.getLogger(__name__)

VERSION = "1.0.0"
PACKAGE_NAME = "finplayer"
COMMIT = "unknown"
API_ROOT = "https://api.github.com"


def get_version() -> str:
    return VERSION


def get_package_name() -> str:
    return PACKAGE_NAME


def get_commit() -> str:
    return COMMIT


def get_platform() -> str:
    """Short name of the platform the application runs on."""
    if sys.platform == "darwin":
        return "macOS"
    if sys.platform.startswith("linux"):
        if os.environ.get("SteamDeck"):
            return "SteamDeck"
        return "Linux"
    if sys.platform == "win32":
        return "Windows"
    return sys.platform


def get_device_name() -> str:
    """Host name of this machine, or the package name when it has none."""
    try:
        name = socket.gethostname()
    except OSError:
        name = ""
    return name or get_package_name()


def is_newer(latest: str, current: str) -> bool:
    """True when the release tag ``latest`` sorts after ``current``."""
    return latest > current


def need_update(latest_version: str) -> bool:
    return is_newer(latest_version, get_version())


def fetch_latest_version(repo: str, timeout: float = 10.0) -> str:
    """Return the tag of the latest release of ``repo`` (``owner/name``)."""
    url = f"{API_ROOT}/repos/{repo}/releases/latest"
    with urllib.request.urlopen(url, timeout=timeout) as resp:
        payload = json.load(resp)
    try:
        tag = payload["tag_name"]
    except (KeyError, TypeError) as exc:
        raise ValueError("release response has no tag_name") from exc
    if not isinstance(tag, str):
        raise ValueError("release tag_name is not a string")
    return tag


def check_update(repo: str, timeout: float = 10.0) -> str | None:
    """Return the newer release tag, or None when up to date or on failure."""
    try:
        latest = fetch_latest_version(repo, timeout)
    except (OSError, ValueError) as exc:
        logger.error("checkUpdate failed: %s", exc)
        return None
    if not need_update(latest):
        logger.info("App is up to date")
        return None
    return latest