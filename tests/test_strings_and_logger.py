import json
import logging
from pathlib import Path

from settlers.engine.logger import DEFAULT_CHANNELS, GameLogger, LoggerConfig
from settlers.i18n.strings import DEFAULT_STRINGS, StringTable


def test_string_table_formats_positional_params() -> None:
    table = StringTable()
    assert table.get("dialog.discard.prompt", 4) == "Please discard 4 resources."
    assert table.get("dialog.selected.count", 1, 3) == "Selected 1 of 3"


def test_string_table_returns_key_when_missing() -> None:
    assert StringTable().get("dialog.unknown", 1) == "dialog.unknown"


def test_string_table_tolerates_missing_params() -> None:
    assert StringTable().get("dialog.discard.prompt") == DEFAULT_STRINGS["dialog.discard.prompt"]


def test_string_table_loads_overrides(tmp_path: Path) -> None:
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"strings": {"base.clear": "Reset"}}))
    table = StringTable.load(settings)
    assert table.get("base.clear") == "Reset"
    assert table.get("base.pick") == "Pick"


def test_string_table_defaults_on_bad_file(tmp_path: Path) -> None:
    settings = tmp_path / "settings.json"
    settings.write_text("{not json")
    assert StringTable.load(settings).templates == DEFAULT_STRINGS
    assert StringTable.load(tmp_path / "missing.json").templates == DEFAULT_STRINGS


def test_logger_config_reads_level_and_channels(tmp_path: Path) -> None:
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"logLevel": "debug", "logChannels": {"server": True, "dialog": False}}))
    config = LoggerConfig.from_settings(settings)
    assert config.level == logging.DEBUG
    assert config.channels["server"] is True
    assert config.channels["dialog"] is False
    assert config.channels["net"] is DEFAULT_CHANNELS["net"]


def test_logger_config_defaults_without_file(tmp_path: Path) -> None:
    config = LoggerConfig.from_settings(tmp_path / "settings.json")
    assert config.level == logging.INFO
    assert config.channels == DEFAULT_CHANNELS


def test_disabled_channel_drops_records(caplog) -> None:
    logger = GameLogger(LoggerConfig(level=logging.DEBUG, channels={"dialog": True, "server": False}))
    with caplog.at_level(logging.DEBUG, logger="settlers"):
        logger.channel("dialog").info("shown")
        logger.channel("server").info("hidden")
        logger.channel("unregistered").info("hidden too")
    messages = [record.getMessage() for record in caplog.records]
    assert "shown" in messages
    assert "hidden" not in messages
    assert "hidden too" not in messages
    logger.set_enabled("server", True)
    assert logger.channel("server").enabled
