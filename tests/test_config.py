import yaml

from mihrab.core.config import Config, diff_config, substitute_env


def test_default_file_is_written(tmp_path):
    config = Config(config_path=str(tmp_path / "config.yaml"), watch=False)

    assert (tmp_path / "config.yaml").exists()
    assert config.section("notifications")["horizon_days"] == 7
    assert config.section("api")["port"] == 8765


def test_section_merges_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump({"notifications": {"debounce_seconds": 0.25}}))

    config = Config(config_path=str(path), watch=False)
    notifications = config.section("notifications")

    assert notifications["debounce_seconds"] == 0.25
    assert notifications["refresh_time"] == "00:05"
    assert config.section("location")["latitude"] is None


def test_env_substitution(tmp_path, monkeypatch):
    monkeypatch.setenv("MIHRAB_TEST_TZ", "Europe/Istanbul")
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump({"prayer_times": {"timezone": "${MIHRAB_TEST_TZ}"}}))

    assert Config(config_path=str(path), watch=False).section("prayer_times")["timezone"] == "Europe/Istanbul"


def test_reload_notifies_callbacks(tmp_path):
    path = tmp_path / "config.yaml"
    config = Config(config_path=str(path), watch=False)
    seen = []
    config.register_change_callback(seen.append)

    data = yaml.safe_load(path.read_text())
    data["notifications"]["horizon_days"] = 3
    path.write_text(yaml.dump(data))
    config.reload()

    assert config.section("notifications")["horizon_days"] == 3
    assert seen and seen[0]["notifications"]["horizon_days"] == 3


def test_invalid_file_keeps_previous_config(tmp_path):
    path = tmp_path / "config.yaml"
    config = Config(config_path=str(path), watch=False)
    path.write_text("- just\n- a list\n")
    config.reload()

    assert config.section("api")["enabled"] is True


def test_env_reference_inside_a_string(monkeypatch):
    monkeypatch.setenv("MIHRAB_TEST_HOME", "/srv/mihrab")
    monkeypatch.delenv("MIHRAB_TEST_MISSING", raising=False)

    data = substitute_env({"paths": ["${MIHRAB_TEST_HOME}/cache", "$MIHRAB_TEST_MISSING/x"], "port": 8765})

    assert data == {"paths": ["/srv/mihrab/cache", "$MIHRAB_TEST_MISSING/x"], "port": 8765}


def test_diff_config():
    old = {"api": {"port": 8765, "host": "127.0.0.1"}, "logging": {"level": "INFO"}}
    new = {"api": {"port": 9000, "host": "127.0.0.1"}, "cache": {"directory": "/tmp"}}

    assert diff_config(old, new) == [
        "changed api.port: 8765 -> 9000",
        "added cache: {'directory': '/tmp'}",
        "removed logging: {'level': 'INFO'}",
    ]
