import json

import pytest

from finplayer.config import (
    AppConfig,
    AppServer,
    AppUser,
    Item,
    Option,
    WindowState,
    config_dir,
    format_window_state,
    parse_window_state,
)


@pytest.fixture
def conf(tmp_path):
    return AppConfig(tmp_path / "cfg")


def test_window_state_round_trip():
    state = WindowState(1, 1280, 720, -5, 40)
    assert parse_window_state(format_window_state(state)) == state


def test_window_state_empty_and_zero_size():
    assert parse_window_state("") is None
    assert parse_window_state("0,0x720,1x1") is None


def test_window_state_malformed():
    with pytest.raises(ValueError):
        parse_window_state("garbage")


def test_config_dir_contains_package(monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", "/tmp/xdg")
    assert config_dir("pkg").endswith("pkg")


def test_option_table_values(conf):
    option = conf.get_options(Item.VIDEO_QUALITY)
    assert option.key == "video_quality"
    assert option.values == (0, 60, 40, 20, 8, 6, 3, 1)
    assert len(option.options) == len(option.values)


def test_get_options(conf):
    option = conf.get_options(Item.DANMAKU_STYLE_SPEED)
    assert option == Option("danmaku_style_speed", ("0.5", "0.75", "1.0", "1.25", "1.5"), (150, 125, 100, 75, 50))


def test_get_item_default_and_set(conf):
    assert conf.get_item(Item.FULLSCREEN, False) is False
    conf.set_item(Item.FULLSCREEN, True)
    assert conf.get_item(Item.FULLSCREEN, False) is True


def test_get_item_type_mismatch_returns_default(conf):
    conf.setting["fullscreen"] = "yes"
    assert conf.get_item(Item.FULLSCREEN, False) is False


def test_option_and_value_index(conf):
    conf.setting["app_theme"] = "dark"
    conf.setting["player_seeking_step"] = 30
    assert conf.get_option_index(Item.APP_THEME) == 2
    assert conf.get_value_index(Item.PLAYER_SEEKING_STEP, 0) == 3
    conf.setting["player_seeking_step"] = 7
    assert conf.get_value_index(Item.PLAYER_SEEKING_STEP, 2) == 2
    assert conf.get_option_index(Item.KEYMAP, 1) == 1


def test_save_load_round_trip(conf):
    conf.add_user(AppUser("u1", "alice", "token", "s1"), "http://localhost:8096")
    conf.set_item(Item.REQUEST_TIMEOUT, 5000)
    conf.device = "device-id"
    conf.save()
    other = AppConfig(conf.directory)
    assert other.load() is True
    assert other.users == conf.users
    assert other.user_id == "u1"
    assert other.user == conf.users[0]
    assert other.get_item(Item.REQUEST_TIMEOUT, 3000) == 5000
    assert other.device == "device-id"


def test_load_missing_generates_device(conf):
    assert conf.load() is False
    assert len(conf.device) == 32


def test_load_damaged_raises(conf, tmp_path):
    conf.path.parent.mkdir(parents=True)
    conf.path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        conf.load()


def test_save_writes_indented_json(conf):
    conf.save()
    text = conf.path.read_text(encoding="utf-8")
    assert json.loads(text)["setting"] == {}
    assert "\n  " in text


def test_add_server_new_and_existing(conf):
    assert conf.add_server(AppServer("s1", "one", "10", "Linux", ["http://a.example.com"])) is False
    updated = AppServer("s1", "renamed", "11", "Linux", ["http://b.example.com"])
    assert conf.add_server(updated) is True
    assert conf.servers[0].name == "renamed"
    assert conf.servers[0].urls == ["http://b.example.com", "http://a.example.com"]
    assert conf.server_url == "http://b.example.com"
    conf.add_server(AppServer("s1", "renamed", "11", "Linux", ["http://a.example.com"]))
    assert conf.servers[0].urls == ["http://a.example.com", "http://b.example.com"]


def test_add_server_without_url(conf):
    with pytest.raises(ValueError):
        conf.add_server(AppServer("s1"))


def test_add_user_updates_existing(conf):
    assert conf.add_user(AppUser("u1", "a", "token", "s1"), "http://x.example.com") is False
    assert conf.add_user(AppUser("u1", "b", "secret", "s1"), "http://y.example.com") is True
    assert len(conf.users) == 1
    assert conf.users[0].name == "b"
    assert conf.server_url == "http://y.example.com"


def test_remove_server_and_user(conf):
    conf.add_server(AppServer("s1", urls=["http://a.example.com"]))
    conf.add_user(AppUser("u1", server_id="s1"), "http://a.example.com")
    assert conf.remove_server("s1") is True
    assert conf.remove_server("s1") is False
    assert conf.remove_user("u1") is True
    assert conf.remove_user("missing") is False
    assert conf.servers == [] and conf.users == []


def test_get_servers_attaches_users_without_mutating(conf):
    conf.add_server(AppServer("s1", urls=["http://a.example.com"]))
    conf.add_server(AppServer("s2", urls=["http://b.example.com"]))
    conf.add_user(AppUser("u1", server_id="s1"), "http://a.example.com")
    servers = conf.get_servers()
    assert [u.id for u in servers[0].users] == ["u1"]
    assert servers[1].users == []
    assert conf.servers[0].users == []


def test_get_device(conf):
    conf.device = "device-id"
    plain = conf.get_device("")
    assert plain.startswith('X-Emby-Authorization: MediaBrowser Client="')
    assert 'DeviceId="device-id"' in plain
    assert "Token" not in plain
    assert conf.get_device("token") == plain + ', Token="token"'


def test_ipc_socket_under_directory(conf):
    assert conf.ipc_socket().endswith(".sock") or conf.ipc_socket().startswith("\\\\.\\pipe\\")


def test_check_restart_disabled(conf):
    assert conf.check_restart(["prog"], False) is False
    with pytest.raises(ValueError):
        conf.check_restart([], True)