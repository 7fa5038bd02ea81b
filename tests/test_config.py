import pytest

from pixel_crawler.config import GameConfig, MapConfig, load_config, save_config
from pixel_crawler.errors import ConfigError


def test_packaged_defaults_match_dataclass_defaults():
    assert load_config() == GameConfig()


def test_user_file_overrides_only_given_keys(tmp_path):
    path = tmp_path / "user.yaml"
    path.write_text("map:\n  base_size: 30\nplayer:\n  stamina_drain_per_second: 15\n", encoding="utf-8")
    config = load_config(path)
    assert config.map.base_size == 30
    assert config.map.max_size == 48
    assert config.player.stamina_drain_per_second == 15
    assert config.economy == GameConfig().economy


def test_missing_user_file_falls_back_to_defaults(tmp_path, caplog):
    assert load_config(tmp_path / "absent.yaml") == GameConfig()
    assert "not found" in caplog.text


def test_unknown_key_is_rejected(tmp_path):
    path = tmp_path / "user.yaml"
    path.write_text("map:\n  teleporters: 3\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_non_mapping_yaml_is_rejected(tmp_path):
    path = tmp_path / "user.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_inconsistent_values_are_rejected():
    with pytest.raises(ConfigError):
        GameConfig.from_dict({"map": {"min_room_size": 8, "max_room_size": 4}})


def test_save_then_load_round_trip(tmp_path):
    config = GameConfig(map=MapConfig(base_size=20, cells_per_room=120))
    path = tmp_path / "nested" / "config.yaml"
    save_config(config, path)
    assert load_config(path) == config


def test_derived_speeds_and_sizes():
    config = GameConfig()
    assert config.walk_speed == pytest.approx(32 / 0.3)
    assert config.run_speed == pytest.approx(32 / 0.15)
    assert config.map.size_for(1) == 24
    assert config.map.size_for(3) == 32
    assert config.map.size_for(50) == 48
    assert config.spawn.currency.count_for(2) == 30


def test_frame_clamp_settings_are_checked():
    with pytest.raises(ConfigError):
        GameConfig.from_dict({"movement": {"max_frame_seconds": 0.01, "long_frame_seconds": 0.016}})
