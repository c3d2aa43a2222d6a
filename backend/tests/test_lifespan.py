"""
FinEase Backend — Application Lifespan Tests
==============================================

What:  Startup and shutdown behaviour of finease.main.lifespan.
How:   The module-level settings and store gateway are patched; the lifespan
       context manager is entered directly (ASGITransport never runs it).

What we test:
    ✅ A configuration error is logged, not raised
    ✅ Eager warm-up only when MONGO_CONNECT_ON_STARTUP is set
    ✅ The cached MongoDB client is closed on shutdown
"""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI

from finease.main import lifespan


def _settings(connect_on_startup: bool, config_error: bool = False) -> MagicMock:
    config = MagicMock(name="settings")
    config.mongo_connect_on_startup = connect_on_startup
    config.startup_retry_attempts = 4
    config.startup_retry_min_wait = 2
    config.startup_retry_max_wait = 9
    config.backend_host = "127.0.0.1"
    config.port = 5000
    if config_error:
        config.validate_required_for_production.side_effect = ValueError("DB_USERNAME missing")
    return config


def _gateway(warm: bool = True) -> MagicMock:
    gateway = MagicMock(name="store_gateway")
    gateway.warm_up = AsyncMock(return_value=warm)
    gateway.close = AsyncMock()
    return gateway


class TestLifespan:
    @pytest.mark.asyncio
    async def test_lazy_startup_skips_warm_up_and_closes_on_exit(self):
        gateway = _gateway()
        with patch("finease.main.settings", _settings(connect_on_startup=False)), \
             patch("finease.main.store_gateway", gateway), \
             patch("finease.main.setup_logging"):
            async with lifespan(FastAPI()):
                gateway.close.assert_not_awaited()

        gateway.warm_up.assert_not_awaited()
        gateway.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_eager_startup_warms_up_with_configured_retries(self):
        gateway = _gateway()
        with patch("finease.main.settings", _settings(connect_on_startup=True)), \
             patch("finease.main.store_gateway", gateway), \
             patch("finease.main.setup_logging"):
            async with lifespan(FastAPI()):
                pass

        gateway.warm_up.assert_awaited_once_with(attempts=4, min_wait=2, max_wait=9)
        gateway.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_warm_up_does_not_abort_startup(self):
        gateway = _gateway(warm=False)
        with patch("finease.main.settings", _settings(connect_on_startup=True)), \
             patch("finease.main.store_gateway", gateway), \
             patch("finease.main.setup_logging"):
            async with lifespan(FastAPI()):
                pass

        gateway.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_configuration_error_is_logged_not_raised(self, caplog):
        config = _settings(connect_on_startup=False, config_error=True)
        gateway = _gateway()
        with patch("finease.main.settings", config), \
             patch("finease.main.store_gateway", gateway), \
             patch("finease.main.setup_logging"), \
             caplog.at_level(logging.ERROR, logger="finease.main"):
            async with lifespan(FastAPI()):
                pass

        config.validate_required_for_production.assert_called_once()
        assert "DB_USERNAME missing" in caplog.text
        gateway.close.assert_awaited_once()
