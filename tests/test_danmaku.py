import pytest

from finplayer.danmaku import (
    DanmakuCore,
    DanmakuFilter,
    DanmakuFontStyle,
    DanmakuItem,
    DanmakuStyle,
)

WIDTH = 800
HEIGHT = 720


def measure(msg, size):
    return len(msg) * size * 0.5


def item(time, kind=1, color=16777215, level=0, msg="hello"):
    return DanmakuItem.from_attributes(msg, f"{time},{kind},25,{color},0,0,0,0,{level}")


def test_from_attributes_parses_fields():
    it = DanmakuItem.from_attributes("hi", "1.5,1,25,16777215,0,0,0,0,3")
    assert it.time == 1.5
    assert it.type == 1
    assert it.font_size == 1.0
    assert it.level == 3
    assert it.is_default_color
    assert it.color == (255, 255, 255)
    assert it.border_color == (0, 0, 0)
    assert it.color_alpha == pytest.approx(0.8)
    assert it.border_alpha == pytest.approx(0.4)


def test_dark_colour_gets_light_border():
    it = DanmakuItem.from_attributes("hi", "0,1,25,0,0,0,0,0,0")
    assert not it.is_default_color
    assert it.border_color == (255, 255, 255)


def test_short_attributes_are_invalid():
    assert DanmakuItem.from_attributes("hi", "1,2,3").type == -1


def test_font_style_from_setting_index():
    names = [DanmakuFontStyle(index).name.lower() for index in range(4)]
    assert names == ["stroke", "incline", "shadow", "pure"]


def test_load_sorts_by_time_and_copies():
    core = DanmakuCore()
    items = [item(3.0), item(1.0), item(2.0)]
    core.load(items, HEIGHT)
    data = core.get_data()
    assert [d.time for d in data] == [1.0, 2.0, 3.0]
    data[0].msg = "changed"
    assert core.get_data()[0].msg == "hello"


def test_no_placements_when_off_or_empty():
    core = DanmakuCore()
    assert core.frame(1.0, 0, WIDTH, HEIGHT, measure=measure) == []
    off = DanmakuCore(style=DanmakuStyle(on=False))
    off.load([item(1.0)], HEIGHT)
    assert off.frame(1.05, 0, WIDTH, HEIGHT, measure=measure) == []


def test_scroll_item_moves_left():
    core = DanmakuCore()
    core.load([item(1.0)], HEIGHT)
    assert core.frame(1.05, 1_000_000, WIDTH, HEIGHT, measure=measure) == []
    first = core.frame(1.5, 2_000_000, WIDTH, HEIGHT, measure=measure)
    second = core.frame(2.0, 3_000_000, WIDTH, HEIGHT, measure=measure)
    assert len(first) == 1 and len(second) == 1
    assert first[0].x < WIDTH
    assert second[0].x < first[0].x
    assert first[0].y == second[0].y


def test_simultaneous_scroll_items_use_different_lines():
    core = DanmakuCore()
    core.load([item(1.0), item(1.0)], HEIGHT)
    core.frame(1.05, 1_000_000, WIDTH, HEIGHT, measure=measure)
    placed = core.frame(1.5, 2_000_000, WIDTH, HEIGHT, measure=measure)
    assert len(placed) == 2
    assert placed[0].y != placed[1].y


def test_top_and_bottom_items_are_centred():
    core = DanmakuCore()
    core.load([item(1.0, kind=5), item(1.0, kind=4)], HEIGHT)
    core.frame(1.05, 1_000_000, WIDTH, HEIGHT, measure=measure)
    placed = core.frame(1.1, 1_050_000, WIDTH, HEIGHT, measure=measure)
    assert len(placed) == 2
    top = next(p for p in placed if p.item.type == 5)
    bottom = next(p for p in placed if p.item.type == 4)
    assert top.y < bottom.y
    for p in placed:
        assert p.x + p.item.length / 2 == pytest.approx(WIDTH / 2)


def test_centred_item_expires():
    core = DanmakuCore()
    core.load([item(1.0, kind=5)], HEIGHT)
    core.frame(1.05, 1_000_000, WIDTH, HEIGHT, measure=measure)
    assert core.frame(5.5, 5_000_000, WIDTH, HEIGHT, measure=measure) == []
    assert not core.get_data()[0].can_show


def test_filters_exclude_items():
    core = DanmakuCore(danmaku_filter=DanmakuFilter(level=5, show_color=False))
    core.load([item(1.0, level=3), item(1.0, color=255, level=9), item(1.0, kind=-1, level=9)], HEIGHT)
    core.frame(1.05, 1_000_000, WIDTH, HEIGHT, measure=measure)
    assert core.frame(1.5, 2_000_000, WIDTH, HEIGHT, measure=measure) == []
    assert all(not d.can_show for d in core.get_data())


def test_paused_position_ignores_wall_clock():
    core = DanmakuCore()
    core.load([item(1.0)], HEIGHT)
    core.frame(1.05, 1_000_000, WIDTH, HEIGHT, measure=measure)
    a = core.frame(2.0, 3_000_000, WIDTH, HEIGHT, paused=True, measure=measure)
    b = core.frame(2.0, 9_000_000, WIDTH, HEIGHT, paused=True, measure=measure)
    assert a[0].x == pytest.approx(b[0].x)


def test_set_speed_keeps_position():
    core = DanmakuCore()
    core.load([item(1.0)], HEIGHT)
    core.frame(1.05, 1_000_000, WIDTH, HEIGHT, measure=measure)
    before = core.frame(2.0, 2_000_000, WIDTH, HEIGHT, measure=measure)
    core.set_speed(2.0, 2_000_000, 2.0)
    assert core.video_speed == 2.0
    after = core.frame(2.0, 2_000_000, WIDTH, HEIGHT, measure=measure)
    assert after[0].x == pytest.approx(before[0].x)


def test_refresh_and_reset():
    core = DanmakuCore()
    core.load([item(1.0)], HEIGHT)
    core.frame(1.05, 1_000_000, WIDTH, HEIGHT, measure=measure)
    assert core.get_data()[0].showing
    core.refresh(HEIGHT)
    data = core.get_data()[0]
    assert not data.showing and data.can_show
    core.reset()
    assert core.get_data() == []
    assert not core.loaded
    assert core.frame(1.05, 1_000_000, WIDTH, HEIGHT, measure=measure) == []