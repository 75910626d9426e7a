"""Persistent application settings, known servers and signed-in users."""

from __future__ import annotations

import copy
import enum
import json
import logging
import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from finplayer.misc import rand_hex
from finplayer.version import get_device_name, get_package_name, get_version

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"
MINIMUM_WINDOW_WIDTH = 640
MINIMUM_WINDOW_HEIGHT = 360


class Item(enum.Enum):
    """A setting, valued by its key in the configuration file."""

    APP_THEME = "app_theme"
    APP_LANG = "app_lang"
    APP_UPDATE = "app_update"
    KEYMAP = "keymap"
    WINDOW_STATE = "window_state"
    TRANSCODEC = "transcodec"
    FORCE_DIRECTPLAY = "force_directplay"
    VIDEO_QUALITY = "video_quality"
    FULLSCREEN = "fullscreen"
    OSD_ON_TOGGLE = "osd_on_toggle"
    TOUCH_GESTURE = "touch_gesture"
    CLIP_POINT = "clip_point"
    SYNC_SETTING = "sync_setting"
    OVERCLOCK = "overclock"
    PLAYER_BOTTOM_BAR = "player_bottom_bar"
    PLAYER_SEEKING_STEP = "player_seeking_step"
    PLAYER_LOW_QUALITY = "player_low_quality"
    PLAYER_SUBS_FALLBACK = "player_subs_fallback"
    PLAYER_INMEMORY_CACHE = "player_inmemory_cache"
    PLAYER_HWDEC = "player_hwdec"
    PLAYER_HWDEC_CUSTOM = "player_hwdec_custom"
    PLAYER_ASPECT = "player_aspect"
    DANMAKU_ON = "danmaku_on"
    DANMAKU_STYLE_AREA = "danmaku_style_area"
    DANMAKU_STYLE_ALPHA = "danmaku_style_alpha"
    DANMAKU_STYLE_FONTSIZE = "danmaku_style_fontsize"
    DANMAKU_STYLE_FONT = "danmaku_style_font"
    DANMAKU_STYLE_LINE_HEIGHT = "danmaku_style_line_height"
    DANMAKU_STYLE_SPEED = "danmaku_style_speed"
    DANMAKU_RENDER_QUALITY = "danmaku_render_quality"
    ALWAYS_ON_TOP = "always_on_top"
    SINGLE = "single"
    APP_SWAP_ABXY = "app_swap_abxy"
    TEXTURE_CACHE_NUM = "texture_cache_num"
    REQUEST_THREADS = "request_threads"
    REQUEST_TIMEOUT = "request_timeout"
    HTTP_PROXY_STATUS = "http_proxy_status"
    HTTP_PROXY_HOST = "http_proxy_host"
    HTTP_PROXY_PORT = "http_proxy_port"


@dataclass(frozen=True)
class Option:
    """The key of a setting with its selectable labels and numeric values."""

    key: str
    options: tuple[str, ...] = ()
    values: tuple[int, ...] = ()


def _opt(item: Item, options: Sequence[str] = (), values: Sequence[int] = ()) -> tuple[Item, Option]:
    return item, Option(item.value, tuple(options), tuple(values))


SETTINGS: dict[Item, Option] = dict(
    [
        _opt(Item.APP_THEME, ["auto", "light", "dark"]),
        _opt(Item.APP_LANG, ["auto", "en-US", "zh-Hans", "zh-Hant", "de", "cs", "uk-UA", "vi_VN"]),
        _opt(Item.APP_UPDATE),
        _opt(Item.KEYMAP, ["xbox", "ps", "keyboard"]),
        _opt(Item.WINDOW_STATE),
        _opt(Item.TRANSCODEC, ["h264", "hevc", "av1"]),
        _opt(Item.FORCE_DIRECTPLAY),
        _opt(
            Item.VIDEO_QUALITY,
            [
                "Auto",
                "1080p - 60Mbps",
                "1080p - 40Mbps",
                "1080p - 20Mbps",
                "720p - 8Mbps",
                "720p - 6Mbps",
                "480p - 3Mbps",
                "480P - 1Mbps",
            ],
            [0, 60, 40, 20, 8, 6, 3, 1],
        ),
        _opt(Item.FULLSCREEN),
        _opt(Item.OSD_ON_TOGGLE),
        _opt(Item.TOUCH_GESTURE),
        _opt(Item.CLIP_POINT),
        _opt(Item.SYNC_SETTING),
        _opt(Item.OVERCLOCK),
        _opt(Item.PLAYER_BOTTOM_BAR),
        _opt(Item.PLAYER_SEEKING_STEP, ["5", "10", "15", "30"], [5, 10, 15, 30]),
        _opt(Item.PLAYER_LOW_QUALITY),
        _opt(Item.PLAYER_SUBS_FALLBACK),
        _opt(
            Item.PLAYER_INMEMORY_CACHE,
            ["0MB", "10MB", "20MB", "50MB", "100MB", "200MB", "500MB"],
            [0, 10, 20, 50, 100, 200, 500],
        ),
        _opt(Item.PLAYER_HWDEC),
        _opt(Item.PLAYER_HWDEC_CUSTOM),
        _opt(Item.PLAYER_ASPECT, ["auto", "stretch", "crop", "4:3", "16:9"]),
        _opt(Item.DANMAKU_ON),
        _opt(Item.DANMAKU_STYLE_AREA, ["1/4", "1/2", "3/4", "1"], [25, 50, 75, 100]),
        _opt(
            Item.DANMAKU_STYLE_ALPHA,
            ["10%", "20%", "30%", "40%", "50%", "60%", "70%", "80%", "90%", "100%"],
            [10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
        ),
        _opt(
            Item.DANMAKU_STYLE_FONTSIZE,
            ["50%", "75%", "100%", "125%", "150%", "175%"],
            [15, 22, 30, 37, 45, 50],
        ),
        _opt(Item.DANMAKU_STYLE_FONT, ["stroke", "incline", "shadow", "pure"]),
        _opt(
            Item.DANMAKU_STYLE_LINE_HEIGHT,
            ["100%", "120%", "140%", "160%", "180%", "200%"],
            [100, 120, 140, 160, 180, 200],
        ),
        _opt(Item.DANMAKU_STYLE_SPEED, ["0.5", "0.75", "1.0", "1.25", "1.5"], [150, 125, 100, 75, 50]),
        _opt(
            Item.DANMAKU_RENDER_QUALITY,
            ["100%", "95%", "90%", "80%", "70%", "60%", "50%"],
            [100, 95, 90, 80, 70, 60, 50],
        ),
        _opt(Item.ALWAYS_ON_TOP),
        _opt(Item.SINGLE),
        _opt(Item.APP_SWAP_ABXY),
        _opt(Item.TEXTURE_CACHE_NUM),
        _opt(Item.REQUEST_THREADS, ["1", "2", "4", "8"], [1, 2, 4, 8]),
        _opt(Item.REQUEST_TIMEOUT, ["1000", "2000", "3000", "5000"], [1000, 2000, 3000, 5000]),
        _opt(Item.HTTP_PROXY_STATUS),
        _opt(Item.HTTP_PROXY_HOST),
        _opt(Item.HTTP_PROXY_PORT),
    ]
)


@dataclass
class AppUser:
    """A user signed in to a server."""

    id: str = ""
    name: str = ""
    access_token: str = ""
    server_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "access_token": self.access_token,
            "server_id": self.server_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppUser":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            access_token=str(data.get("access_token", "")),
            server_id=str(data.get("server_id", "")),
        )


@dataclass
class AppServer:
    """A media server with the addresses it has been reached at, newest first."""

    id: str = ""
    name: str = ""
    version: str = ""
    os: str = ""
    urls: list[str] = field(default_factory=list)
    users: list[AppUser] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "os": self.os,
            "urls": list(self.urls),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppServer":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            version=str(data.get("version", "")),
            os=str(data.get("os", "")),
            urls=[str(u) for u in data.get("urls", [])],
        )


@dataclass(frozen=True)
class WindowState:
    """Saved window geometry: monitor index, size and position."""

    monitor: int
    width: int
    height: int
    x: int
    y: int


_WINDOW_STATE_RE = re.compile(r"\s*(-?\d+),(\d+)x(\d+),(-?\d+)x(-?\d+)\s*")


def parse_window_state(text: str) -> WindowState | None:
    """Parse ``monitor,WxH,XxY``; None when empty or the size is zero."""
    if not text:
        return None
    match = _WINDOW_STATE_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"malformed window state: {text!r}")
    monitor, width, height, x, y = (int(g) for g in match.groups())
    if width <= 0 or height <= 0:
        return None
    return WindowState(monitor, width, height, x, y)


def format_window_state(state: WindowState) -> str:
    """Inverse of :func:`parse_window_state`."""
    return f"{state.monitor},{state.width}x{state.height},{int(state.x)}x{int(state.y)}"


def config_dir(package_name: str) -> str:
    """Per-user configuration directory for ``package_name`` on this platform."""
    if sys.platform == "win32":
        base = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
        return f"{base}\\{package_name}"
    if sys.platform == "darwin":
        return f"{Path.home()}/Library/Application Support/{package_name}"
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return f"{config_home}/{package_name}"
    return f"{Path.home()}/.config/{package_name}"


def _matches(value: Any, default: Any) -> bool:
    if default is None:
        return True
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, int):
        return isinstance(value, int) and not isinstance(value, bool)
    if isinstance(default, float):
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, type(default))


class AppConfig:
    """Settings, servers and users kept in ``config.json`` under a directory."""

    def __init__(self, directory: str | os.PathLike[str] | None = None) -> None:
        self.directory = str(directory) if directory is not None else config_dir(get_package_name())
        self.users: list[AppUser] = []
        self.servers: list[AppServer] = []
        self.user_id = ""
        self.server_url = ""
        self.device = ""
        self.setting: dict[str, Any] = {}
        self.user: AppUser | None = None

    @property
    def path(self) -> Path:
        return Path(self.directory) / CONFIG_FILE

    def to_dict(self) -> dict[str, Any]:
        return {
            "users": [u.to_dict() for u in self.users],
            "servers": [s.to_dict() for s in self.servers],
            "user_id": self.user_id,
            "server_url": self.server_url,
            "device": self.device,
            "setting": dict(self.setting),
        }

    def load(self) -> bool:
        """Read the configuration file if present; True when one was read.

        A damaged file raises ``ValueError``. A device id is generated when
        none is stored.
        """
        loaded = False
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            text = None
        if text is not None:
            data = json.loads(text)
            if not isinstance(data, dict):
                raise ValueError("configuration root must be an object")
            setting = data.get("setting", {})
            if not isinstance(setting, dict):
                raise ValueError("configuration 'setting' must be an object")
            self.users = [AppUser.from_dict(u) for u in data.get("users", [])]
            self.servers = [AppServer.from_dict(s) for s in data.get("servers", [])]
            self.user_id = str(data.get("user_id", ""))
            self.server_url = str(data.get("server_url", ""))
            self.device = str(data.get("device", ""))
            self.setting = dict(setting)
            self.user = next((u for u in self.users if u.id == self.user_id), None)
            logger.info("Load config from: %s", self.path)
            loaded = True
        if not self.device:
            self.device = rand_hex(16)
        return loaded

    def save(self) -> None:
        """Write the configuration file, creating its directory."""
        try:
            Path(self.directory).mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning("AppConfig save: %s", exc)

    def get_item(self, item: Item, default: Any = None) -> Any:
        """Stored value of ``item``, or ``default`` when absent or of another type."""
        key = SETTINGS[item].key
        if key not in self.setting:
            return default
        value = self.setting[key]
        if not _matches(value, default):
            logger.error("Damaged config found: %s", key)
            return default
        return value

    def set_item(self, item: Item, value: Any) -> None:
        """Store ``value`` for ``item`` and save."""
        self.setting[SETTINGS[item].key] = value
        self.save()

    def get_options(self, item: Item) -> Option:
        return SETTINGS[item]

    def get_option_index(self, item: Item, default_index: int = 0) -> int:
        """Index of the stored label among the item's options."""
        option = SETTINGS[item]
        value = self.setting.get(option.key)
        if isinstance(value, str) and value in option.options:
            return option.options.index(value)
        return default_index

    def get_value_index(self, item: Item, default_index: int = 0) -> int:
        """Index of the stored number among the item's values."""
        option = SETTINGS[item]
        value = self.setting.get(option.key)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value in option.values:
            return option.values.index(value)
        return default_index

    def add_server(self, server: AppServer) -> bool:
        """Record ``server``; True when it was already known and got updated."""
        if not server.urls:
            raise ValueError("server has no url")
        self.server_url = server.urls[0]
        for known in self.servers:
            if known.id == server.id:
                known.name = server.name
                known.version = server.version
                known.os = server.os
                if self.server_url in known.urls:
                    known.urls.remove(self.server_url)
                known.urls.insert(0, self.server_url)
                self.save()
                return True
        self.servers.append(server)
        self.save()
        return False

    def add_user(self, user: AppUser, url: str) -> bool:
        """Record ``user`` as current; True when it was already known."""
        found = False
        for known in self.users:
            if known.id == user.id:
                known.name = user.name
                known.access_token = user.access_token
                known.server_id = user.server_id
                found = True
                break
        if not found:
            self.users.append(user)
        self.server_url = url
        self.user_id = user.id
        self.user = user
        self.save()
        return found

    def remove_server(self, server_id: str) -> bool:
        for server in self.servers:
            if server.id == server_id:
                self.servers.remove(server)
                self.save()
                return True
        return False

    def remove_user(self, user_id: str) -> bool:
        for user in self.users:
            if user.id == user_id:
                self.users.remove(user)
                self.save()
                return True
        return False

    def get_device(self, token: str = "") -> str:
        """The authorization header line identifying this client."""
        header = (
            f'X-Emby-Authorization: MediaBrowser Client="{get_package_name()}", '
            f'Device="{get_device_name()}", DeviceId="{self.device}", Version="{get_version()}"'
        )
        if token:
            header += f', Token="{token}"'
        return header

    def get_servers(self) -> list[AppServer]:
        """Copies of the known servers, each with its users attached."""
        result = [copy.deepcopy(s) for s in self.servers]
        for user in self.users:
            for server in result:
                if user.server_id == server.id:
                    server.users.append(copy.deepcopy(user))
        return result

    def ipc_socket(self) -> str:
        """Address another instance listens on for single-instance mode."""
        name = get_package_name()
        if sys.platform == "win32":
            return "\\\\.\\pipe\\" + name
        return f"{self.directory}/{name}.sock"

    def check_restart(self, argv: Sequence[str], restart: bool) -> bool:
        """Replace the current process with ``argv`` when ``restart`` is set."""
        if not restart:
            return False
        if not argv:
            raise ValueError("argv must name the program to restart")
        logger.info("Restart app %s", argv[0])
        os.execv(argv[0], list(argv))
        return True