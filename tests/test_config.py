import json
import os

from config import DEFAULT_CONFIG, AppConfig


def test_paths_live_in_data_dir(tmp_path):
    data_dir = str(tmp_path / "data")
    cfg = AppConfig(user_data_dir=data_dir)

    assert os.path.isdir(data_dir)
    assert cfg.accounts_path == os.path.join(data_dir, "accounts.json")
    assert cfg.devices_path == os.path.join(data_dir, "devices.json")
    assert cfg.config_path == os.path.join(data_dir, "config.json")
    assert cfg.log_path == os.path.join(data_dir, "app.log")


def test_defaults_when_no_config_file(tmp_path):
    cfg = AppConfig(user_data_dir=str(tmp_path))

    assert cfg.data == DEFAULT_CONFIG
    assert cfg.get("load_devices_on_start") is True
    assert cfg.get("missing", "fallback") == "fallback"


def test_defaults_are_not_shared_between_instances(tmp_path):
    cfg = AppConfig(user_data_dir=str(tmp_path))
    cfg.get("excel_column_widths")["A"] = 99

    assert DEFAULT_CONFIG["excel_column_widths"]["A"] == 12


def test_save_and_reload(tmp_path):
    cfg = AppConfig(user_data_dir=str(tmp_path))
    cfg.set("window_geometry", "1024x768")
    cfg.save()

    reloaded = AppConfig(user_data_dir=str(tmp_path))

    assert reloaded.get("window_geometry") == "1024x768"


def test_missing_keys_are_back_filled(tmp_path):
    with open(tmp_path / "config.json", "w", encoding="utf-8") as fh:
        json.dump({"window_geometry": "640x480"}, fh)

    cfg = AppConfig(user_data_dir=str(tmp_path))

    assert cfg.get("window_geometry") == "640x480"
    assert cfg.get("excel_column_widths") == DEFAULT_CONFIG["excel_column_widths"]


def test_unreadable_config_falls_back_to_defaults(tmp_path):
    (tmp_path / "config.json").write_text("[1, 2", encoding="utf-8")

    assert AppConfig(user_data_dir=str(tmp_path)).data == DEFAULT_CONFIG


def test_non_object_config_falls_back_to_defaults(tmp_path):
    (tmp_path / "config.json").write_text("[1, 2]", encoding="utf-8")

    assert AppConfig(user_data_dir=str(tmp_path)).data == DEFAULT_CONFIG
