"""Settings, danmaku layout, touch gestures, a thread pool and helpers for a media-server video client."""

__version__ = "0.1.0"

__all__ = ["config", "danmaku", "gesture", "misc", "thread", "version"]