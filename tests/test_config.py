"""Tests for environment configuration and structured logging."""

import json
import logging

import pytest

from ethoslink.config import DEFAULT_BASE_URL, DEFAULT_CLIENT_ID, EngineConfig
from ethoslink.dispatcher import IntentDispatcher
from ethoslink.fallback import DegradationController
from ethoslink.log import RequestContextFilter, bind_request, intent_var, request_id_var, setup_logging


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig.from_env({})
        assert config.base_url == DEFAULT_BASE_URL
        assert config.client_id == DEFAULT_CLIENT_ID
        assert config.request_timeout is None
        assert config.synthetic_tier is True
        assert config.static_tier is True

    def test_from_env(self):
        config = EngineConfig.from_env({
            "ETHOS_API_BASE_URL": "http://localhost:8080/api/v2/",
            "ETHOS_CLIENT_ID": "bot@1.2",
            "ETHOS_HTTP_TIMEOUT": "3.5",
            "ETHOSLINK_REQUEST_TIMEOUT": "20",
            "ETHOSLINK_SYNTHETIC_TIER": "0",
            "ETHOSLINK_STATIC_TIER": "off",
            "ETHOSLINK_LOG_LEVEL": "DEBUG",
        })
        assert config.base_url == "http://localhost:8080/api/v2"
        assert config.client_id == "bot@1.2"
        assert config.http_timeout == 3.5
        assert config.request_timeout == 20.0
        assert config.synthetic_tier is False
        assert config.static_tier is False
        assert config.log_level == "DEBUG"

    def test_blank_flag_keeps_default(self):
        assert EngineConfig.from_env({"ETHOSLINK_STATIC_TIER": " "}).static_tier is True

    @pytest.mark.parametrize("kwargs", [{"http_timeout": 0}, {"request_timeout": -1}])
    def test_rejects_non_positive_timeouts(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)

    def test_frozen(self):
        with pytest.raises(Exception):
            EngineConfig().base_url = "elsewhere"


class TestLogging:
    def test_bind_request(self):
        rid = bind_request("user_stats")
        assert len(rid) == 12
        assert request_id_var.get() == rid
        assert intent_var.get() == "user_stats"
        assert bind_request() != rid
        assert intent_var.get() == ""

    def test_filter_stamps_record(self):
        rid = bind_request("leaderboard")
        record = logging.LogRecord("ethoslink.test", logging.INFO, __file__, 1, "hello", None, None)
        assert RequestContextFilter().filter(record) is True
        assert record.request_id == rid
        assert record.intent == "leaderboard"
        assert record.tier is None

    def test_setup_logging_emits_json(self):
        logger = setup_logging("INFO")
        handler = logger.handlers[0]
        rid = bind_request("user_profile")
        record = logger.makeRecord("ethoslink.test", logging.INFO, __file__, 1, "resolved %s", ("cookedzera",), None)
        handler.filter(record)
        payload = json.loads(handler.format(record))
        assert payload["message"] == "resolved cookedzera"
        assert payload["level"] == "INFO"
        assert payload["request_id"] == rid
        assert payload["intent"] == "user_profile"
        assert payload["tier"] is None
        assert payload["service"] == "ethoslink"

    def test_tier_extra_reaches_json(self):
        logger = setup_logging("INFO")
        handler = logger.handlers[0]
        bind_request("user_stats")
        record = logger.makeRecord(
            "ethoslink.fallback", logging.INFO, __file__, 1, "served", None, None, extra={"tier": "synthetic"},
        )
        handler.filter(record)
        payload = json.loads(handler.format(record))
        assert payload["tier"] == "synthetic"
        assert payload["intent"] == "user_stats"

    @pytest.mark.asyncio
    async def test_controller_logs_tier(self, caplog):
        def boom():
            raise RuntimeError("directory down")

        with caplog.at_level(logging.INFO, logger="ethoslink.fallback"):
            await DegradationController().run(live=boom, synthetic=lambda: [1], label="profile")
        tiers = [getattr(r, "tier", None) for r in caplog.records if r.name == "ethoslink.fallback"]
        assert tiers == ["live", "synthetic"]

    @pytest.mark.asyncio
    async def test_execute_binds_intent(self):
        async with IntentDispatcher() as dispatcher:
            await dispatcher.execute("user_profile", {})
        assert intent_var.get() == "user_profile"
        assert request_id_var.get()

    def test_setup_logging_idempotent(self):
        first = setup_logging("WARNING")
        count = len(first.handlers)
        assert len(setup_logging("DEBUG").handlers) == count
        assert first.level == logging.DEBUG
