import pytest

from mihrab.core.db import dispose_db
from mihrab.main import build_parser, main


@pytest.fixture
def config_path(tmp_path):
    """Config file in a temp dir; the default database lands next to it."""
    dispose_db()
    yield str(tmp_path / "config.yaml")
    dispose_db()


def test_toggle_prints_the_new_record(config_path, capsys):
    assert main(["--config", config_path, "toggle", "2024-01-03", "fajr"]) == 0

    out = capsys.readouterr().out
    assert "2024-01-03: Fajr=x, Dhuhr=-, Asr=-, Maghrib=-, Isha=-" in out


def test_toggle_writes_to_the_configured_database(config_path, tmp_path, capsys):
    main(["--config", config_path, "toggle", "2024-01-03", "Isha"])

    assert (tmp_path / "mihrab.db").exists()
    assert (tmp_path / "config.yaml").exists()


def test_stats_after_toggles(config_path, capsys):
    for day in ("2024-01-01", "2024-01-02"):
        for prayer in ("Fajr", "Dhuhr", "Asr", "Maghrib", "Isha"):
            main(["--config", config_path, "toggle", day, prayer])
    capsys.readouterr()

    assert main(["--config", config_path, "stats", "--date", "2024-01-02"]) == 0

    out = capsys.readouterr().out
    assert "Weekly: 10/35" in out
    assert "Current streak: 2  Best streak: 2" in out


def test_insight_prints_category_and_content(config_path, capsys):
    assert main(["--config", config_path, "insight", "--date", "2024-01-03"]) == 0

    out = capsys.readouterr().out
    assert out.startswith("[")
    assert "(" in out


def test_sync_without_coordinates_schedules_nothing(config_path, capsys):
    assert main(["--config", config_path, "sync"]) == 0

    assert "Scheduled: None, pending: 0" in capsys.readouterr().out


def test_rejects_unknown_prayer():
    with pytest.raises(SystemExit) as exc:
        build_parser().parse_args(["toggle", "2024-01-03", "Witr"])
    assert exc.value.code == 2


def test_rejects_bad_date():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["stats", "--date", "03/01/2024"])
