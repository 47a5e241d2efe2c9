"""Tests for the log sink setup."""

from loguru import logger

from marketgazer.config import config
from marketgazer.utils import logger as logger_module


def test_sinks_write_to_log_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(logger_module, "LOGS_DIR", tmp_path)
    monkeypatch.setattr(config, "log_file", tmp_path / "marketgazer.log")

    try:
        logger_module.setup_logger("WARNING")
        logger.error("lookup failed")
        logger.complete()

        assert "lookup failed" in (tmp_path / "errors.log").read_text()
        assert "Logger initialized" in (tmp_path / "marketgazer.log").read_text()
        assert "lookup failed" not in (tmp_path / "llm.log").read_text()
    finally:
        logger.remove()


def test_model_records_filter():
    assert logger_module._is_model_record({"name": "marketgazer.llm.llm_client"})
    assert not logger_module._is_model_record({"name": "marketgazer.dashboard_app"})
