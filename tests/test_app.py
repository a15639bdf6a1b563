import logging
from logging.handlers import RotatingFileHandler

import pytest

from clinicboost.app import initialize, setup_logging
from clinicboost.cache.registry import CacheRegistry
from clinicboost.config import Settings


@pytest.fixture(autouse=True)
def _isolated_package_logger():
    """Strip handlers added to the ``clinicboost`` logger during a test."""
    package_logger = logging.getLogger("clinicboost")
    saved_handlers = package_logger.handlers[:]
    saved_level = package_logger.level
    yield
    for handler in package_logger.handlers[:]:
        if handler not in saved_handlers:
            package_logger.removeHandler(handler)
            handler.close()
    package_logger.setLevel(saved_level)


def _handlers(kind: type) -> list[logging.Handler]:
    return [h for h in logging.getLogger("clinicboost").handlers if type(h) is kind]


class TestSetupLogging:
    def test_sets_package_logger_level(self, tmp_path):
        setup_logging("DEBUG", tmp_path)
        assert logging.getLogger("clinicboost").level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, tmp_path):
        setup_logging("CHATTY", tmp_path)
        assert logging.getLogger("clinicboost").level == logging.INFO

    def test_leaves_root_logger_alone(self, tmp_path):
        root = logging.getLogger()
        before = root.handlers[:]
        setup_logging("INFO", tmp_path)
        assert root.handlers == before

    def test_file_handler_writes_under_data_dir(self, tmp_path):
        setup_logging("INFO", tmp_path)
        (file_handler,) = _handlers(RotatingFileHandler)
        assert file_handler.baseFilename == str(tmp_path / "logs" / "cache.log")
        assert file_handler.maxBytes == 5 * 1024 * 1024
        assert file_handler.backupCount == 3

    def test_repeat_call_adds_no_handlers_but_updates_level(self, tmp_path):
        setup_logging("INFO", tmp_path)
        setup_logging("WARNING", tmp_path)
        assert len(_handlers(logging.StreamHandler)) == 1
        (file_handler,) = _handlers(RotatingFileHandler)
        assert file_handler.level == logging.WARNING

    def test_cache_logs_reach_file(self, tmp_path):
        from clinicboost.cache.store import Cache

        setup_logging("INFO", tmp_path)
        Cache(name="patients").clear()
        for handler in logging.getLogger("clinicboost").handlers:
            handler.flush()
        log_text = (tmp_path / "logs" / "cache.log").read_text()
        assert "Cache 'patients' cleared (0 entries)" in log_text


class TestInitialize:
    def test_builds_registry_from_settings(self, tmp_path):
        settings = Settings(_env_file=None, data_dir=tmp_path / "data", api_cache_max_size=7)
        registry = initialize(settings)
        assert isinstance(registry, CacheRegistry)
        assert registry.api.config.max_size == 7
        assert (tmp_path / "data" / "logs" / "cache.log").exists()

    def test_logs_initialization(self, tmp_path, caplog):
        settings = Settings(_env_file=None, data_dir=tmp_path)
        with caplog.at_level("INFO", logger="clinicboost.app"):
            initialize(settings)
        assert "ClinicBoost caches initialized (general=1000, selector=500, api=200)" in caplog.text

    def test_uses_global_settings_by_default(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        initialize()
        assert logging.getLogger("clinicboost").level == logging.DEBUG
        assert (tmp_path / "logs").is_dir()

    async def test_registry_sweeps_start_under_async_with(self, tmp_path):
        registry = initialize(Settings(_env_file=None, data_dir=tmp_path))
        async with registry:
            assert all(c.cleanup_running for c in registry.caches().values())
        assert not any(c.cleanup_running for c in registry.caches().values())
