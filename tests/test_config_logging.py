import json
import logging

from print_elements.core import config
from print_elements.core.logging import ElementContextFilter, JsonFormatter, configure_logging, current_element


def test_save_and_load_config(tmp_path):
    path = tmp_path / "nested" / "config.json"
    config.save_config({"rtf_render_width": 384}, path=str(path))
    assert config.load_config(str(path)) == {"rtf_render_width": 384}
    assert config.load_config(str(tmp_path / "missing.json")) is None


def test_settings_precedence(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    config.save_config({"rtf_render_width": 384, "rtf_font_size": 20}, path=str(path))
    monkeypatch.setenv("PRINTELEMENTS_CONFIG_PATH", str(path))
    monkeypatch.setenv("PRINTELEMENTS_RTF_FONT_SIZE", "30")
    monkeypatch.setenv("PRINTELEMENTS_PREPARE_TIMEOUT_SECONDS", "2.5")

    settings = config.get_settings({"max_source_bytes": 10})
    assert settings["rtf_render_width"] == 384  # file
    assert settings["rtf_font_size"] == 30  # env beats file
    assert settings["prepare_timeout_seconds"] == 2.5
    assert settings["max_source_bytes"] == 10  # overrides beat env
    assert settings["default_encoding"] == "utf-8"  # default


def test_invalid_env_value_is_ignored(monkeypatch):
    monkeypatch.setenv("PRINTELEMENTS_RTF_RENDER_WIDTH", "wide")
    assert config.get_settings()["rtf_render_width"] == config.DEFAULT_SETTINGS["rtf_render_width"]


def test_default_config_path_honours_xdg(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert config.default_config_path() == str(tmp_path / "printelements" / "config.json")


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("print_elements.test", logging.INFO, __file__, 1, msg, None, None)


def test_element_filter_uses_current_element():
    record = _record()
    ElementContextFilter().filter(record)
    assert record.element_id == "-"

    token = current_element.set("abc123")
    try:
        record = _record()
        ElementContextFilter().filter(record)
        assert record.element_id == "abc123"
    finally:
        current_element.reset(token)


def test_json_formatter():
    record = _record("prepared")
    record.element_id = "abc123"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["msg"] == "prepared"
    assert payload["element_id"] == "abc123"
    assert payload["level"] == "INFO"


def test_configure_logging_installs_single_handler(monkeypatch):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    monkeypatch.setenv("PRINTELEMENTS_JSON_LOGS", "true")
    try:
        configure_logging()
        configure_logging()
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler.formatter, JsonFormatter)
        assert any(isinstance(f, ElementContextFilter) for f in handler.filters)
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)
