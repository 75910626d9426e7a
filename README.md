# finplayer

The non-graphical core of a video client for a media server. It is a plain
Python library that depends only on the standard library.

- `finplayer.config` holds the persisted application settings
  (`AppConfig`). It also provides the table of selectable labels and values
  for each setting (`Item`, `Option`, `SETTINGS`), the saved servers and users
  (`AppServer`, `AppUser`), the window-state strings (`WindowState`,
  `parse_window_state`, `format_window_state`), the per-user configuration
  directory (`config_dir`) and the client authorization header
  (`AppConfig.get_device`).
- `finplayer.danmaku` parses scrolling comments ("danmaku") and computes the
  per-frame layout. The layout decides which comment goes on which line and
  where it is drawn (`DanmakuItem`, `DanmakuCore`, `DanmakuStyle`,
  `DanmakuFilter`, `DanmakuFontStyle`, `Placement`).
- `finplayer.gesture` is the on-screen-display touch recognizer. It tells
  taps, double taps, long presses and horizontal or left/right vertical pans
  apart (`OsdGestureRecognizer`, `OsdGestureStatus`, `OsdGestureType`).
- `finplayer.thread` is a small pool of worker threads for background work
  (`ThreadPool`).
- `finplayer.version` covers the application version, package name, platform
  and device name, and release checking (`check_update`,
  `fetch_latest_version`, `is_newer`).
- `finplayer.misc` holds time and size formatting, hex and base64 helpers, and
  a single-instance IPC sender (`send_ipc`).

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

Formatting helpers:

```python
from finplayer.misc import sec_to_time, format_size, split

sec_to_time(3725)        # "01:02:05"
sec_to_time(65)          # "01:05"
format_size(0)           # "-"
format_size(512 * 1024)  # "512KB"
split("a,b,c", ",")      # ["a", "b", "c"]
```

### Settings

Settings are kept as `config.json` in a configuration directory:

```python
from finplayer.config import AppConfig, Item, config_dir

conf = AppConfig(config_dir("finplayer"))
conf.load()                       # True if a file was read; ValueError if it is damaged

step = conf.get_item(Item.PLAYER_SEEKING_STEP, 15)
conf.set_item(Item.PLAYER_SEEKING_STEP, 30)    # also saves
index = conf.get_value_index(Item.PLAYER_SEEKING_STEP, 2)
```

`get_item` returns the default when the setting is missing. It also returns
the default when the stored value has a different type from the default.
`load` generates a random device id when none is stored.

`add_server`, `add_user`, `remove_server` and `remove_user` update the stored
lists and save them. `get_servers` returns copies of the servers with their
users attached.

### Thread pool

Background work goes through a thread pool:

```python
from finplayer.thread import ThreadPool

with ThreadPool(4) as pool:
    pool.submit(lambda: print("done"))
```

Submitting to a stopped pool raises `RuntimeError`.

### Danmaku layout

You drive `DanmakuCore` once per frame. Pass `frame(playback_time, now, width,
height, paused, measure)` the current playback time in seconds and a wall
clock in microseconds. Also pass the size of the drawing area and, if you
like, a function that measures text width. It returns a list of `Placement`
values, each with an `x`, a `y` and a font size.

Comments are built with `DanmakuItem.from_attributes(content, attributes)`
from a comma-separated attribute string. An item with fewer than nine
attributes has type -1 and is never shown.

### Gestures

`OsdGestureRecognizer` takes a callback that receives an `OsdGestureStatus`
whenever a gesture starts, updates, ends or is cancelled. Feed it touch input
with `recognition_loop(phase, position, frame)`. You can replace the clock and
the delay scheduler, which makes the recognizer easy to drive in tests.

## What this package does not do

- It does not play video and does not draw anything. `DanmakuCore.frame` only
  computes positions, and the caller renders them.
- Advanced (type 7) comments are filtered but never placed.
- It does not talk to a media server. There is no login or library browsing.
- It has no command-line program and no user interface.
- `check_update` only reports a newer release tag. It downloads nothing.
- `AppConfig.check_restart` replaces the current process with the given
  `argv` when asked. It does not decide by itself whether a restart is needed.