"""
Tests for configuration loading.
"""

from pathlib import Path

import pytest

from muse.core.config import (
    Config,
    QueueConfig,
    TrackerConfig,
    get_config_dir,
    get_data_dir,
    get_socket_path,
    load_config,
    parse_config,
)


def test_defaults_match_documented_thresholds() -> None:
    config = Config()

    assert (config.queue.min_length, config.queue.max_length) == (9, 27)
    assert config.queue.stream_length == 30
    assert config.queue.sample_size == 10
    assert config.queue.stream_min_connections == 3
    assert config.tracker.listen_threshold == 0.8


def test_xdg_directories(isolated_dirs: Path) -> None:
    assert get_config_dir() == isolated_dirs / "config" / "muse"
    assert get_data_dir() == isolated_dirs / "data" / "muse"


def test_parse_sections() -> None:
    config = parse_config(
        {
            "queue": {"min_length": 5, "max_length": 10},
            "tracker": {"listen_threshold": 0.5, "poll_interval": 2},
            "logging": {"level": "debug"},
        }
    )

    assert config.queue.min_length == 5
    assert config.queue.max_length == 10
    assert config.queue.stream_length == 30
    assert config.tracker.listen_threshold == 0.5
    assert config.tracker.poll_interval == 2.0
    assert config.logging.level == "DEBUG"


def test_invalid_queue_section_falls_back_to_defaults() -> None:
    config = parse_config({"queue": {"min_length": 20, "max_length": 10}})

    assert config.queue == QueueConfig()


def test_invalid_tracker_section_falls_back_to_defaults() -> None:
    config = parse_config({"tracker": {"listen_threshold": 1.5}})

    assert config.tracker == TrackerConfig()


def test_load_creates_default_file(isolated_dirs: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(isolated_dirs)

    config = load_config()

    assert (isolated_dirs / "config" / "muse" / "config.toml").exists()
    assert config == Config()


def test_load_reads_existing_file(isolated_dirs: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(isolated_dirs)
    config_file = isolated_dirs / "config" / "muse" / "config.toml"
    config_file.parent.mkdir(parents=True)
    config_file.write_text("[queue]\nstream_length = 12\n")

    assert load_config().queue.stream_length == 12


def test_broken_file_uses_defaults(isolated_dirs: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(isolated_dirs)
    config_file = isolated_dirs / "config" / "muse" / "config.toml"
    config_file.parent.mkdir(parents=True)
    config_file.write_text("[queue\nbroken")

    assert load_config() == Config()


def test_socket_env_override(isolated_dirs: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(isolated_dirs)
    monkeypatch.setenv("MUSE_MPV_SOCKET", "/tmp/custom.sock")

    config = load_config()

    assert get_socket_path(config) == Path("/tmp/custom.sock")


def test_default_socket_in_runtime_dir(isolated_dirs: Path) -> None:
    assert get_socket_path(Config()) == isolated_dirs / "run" / "muse" / "mpv.sock"


@pytest.mark.parametrize(
    "field_name",
    ["stream_min_connections", "current_path_length", "thread_path_length", "pad_attempts"],
)
def test_negative_queue_values_are_rejected(field_name: str) -> None:
    with pytest.raises(ValueError, match=field_name):
        QueueConfig(**{field_name: -1}).validate()

    config = parse_config({"queue": {field_name: -1}})

    assert config.queue == QueueConfig()


def test_zero_play_length_is_rejected() -> None:
    with pytest.raises(ValueError, match="play_length"):
        QueueConfig(play_length=0).validate()


def test_library_paths_are_expanded() -> None:
    config = parse_config({"music": {"library_paths": ["~/Tunes"]}})

    assert config.music.library_paths == [str(Path("~/Tunes").expanduser())]
