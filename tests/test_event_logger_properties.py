"""
Property-based tests for the event logger.
"""

import asyncio
import json
from io import StringIO

from hypothesis import given, settings
from hypothesis import strategies as st

from domain_market.config import LoggingConfig
from domain_market.enums import LogLevel
from domain_market.event_logger import EventLogger
from domain_market.exceptions import RateLimitError

from fakes import FakeRegistrar, make_client


def log_level_strategy() -> st.SearchStrategy[LogLevel]:
    return st.sampled_from(list(LogLevel))


def component_name_strategy() -> st.SearchStrategy[str]:
    return st.sampled_from(["RequestQueue", "RegistrarClient", "DomainSearchEngine"])


def sensitive_key_strategy() -> st.SearchStrategy[str]:
    return st.sampled_from([
        "apikey", "secretapikey", "api_key", "secret_api_key", "APIKEY",
        "token", "password", "Authorization", "client_secret",
    ])


def non_sensitive_key_strategy() -> st.SearchStrategy[str]:
    return st.sampled_from(["domain", "endpoint", "tld", "retry", "wait_seconds", "query"])


class TestDualFormatProperty:

    @given(
        level=log_level_strategy(),
        component=component_name_strategy(),
        message=st.text(alphabet=st.characters(blacklist_categories=("Cs", "Cc", "Zl", "Zp")), min_size=1, max_size=60),
    )
    @settings(max_examples=100)
    def test_both_format_writes_json_and_text(self, level: LogLevel, component: str, message: str) -> None:
        """
        *For any* entry logged in 'both' mode, the output SHALL contain one
        JSON line followed by one text line for the same entry.
        """
        output = StringIO()
        logger = EventLogger(output_format="both", output_stream=output, min_level=LogLevel.DEBUG)

        logger.log(level, component, message, {"domain": "example.com"})

        json_line, text_line = output.getvalue().splitlines()[:2]
        parsed = json.loads(json_line)
        assert parsed["level"] == level.value
        assert parsed["component"] == component
        assert parsed["message"] == message
        assert text_line.startswith(f"[{parsed['timestamp']}] {level.value.upper()} [{component}]")

    def test_text_format(self) -> None:
        output = StringIO()
        logger = EventLogger(output_format="text", output_stream=output)

        logger.info("RequestQueue", "Queue cleared", {"rejected": 3})

        line = output.getvalue().strip()
        assert "INFO [RequestQueue] Queue cleared" in line
        assert line.endswith('{"rejected": 3}')

    def test_invalid_format_rejected(self) -> None:
        try:
            EventLogger(output_format="xml")
        except ValueError as e:
            assert "xml" in str(e)
        else:
            raise AssertionError("expected ValueError")


class TestLevelFilteringProperty:

    @given(level=log_level_strategy(), minimum=log_level_strategy())
    @settings(max_examples=100)
    def test_entries_below_minimum_are_dropped(self, level: LogLevel, minimum: LogLevel) -> None:
        order = list(LogLevel)
        output = StringIO()
        logger = EventLogger(output_format="json", output_stream=output, min_level=minimum)

        entry = logger.log(level, "RegistrarClient", "message")

        if order.index(level) >= order.index(minimum):
            assert entry is not None
            assert len(logger.entries) == 1
        else:
            assert entry is None
            assert logger.entries == []
            assert output.getvalue() == ""

    def test_from_config(self) -> None:
        logger = EventLogger.from_config(LoggingConfig(level="WARN", output_format="json"))

        assert logger.min_level is LogLevel.WARN
        assert logger.output_format == "json"


class TestSensitiveDataMaskingProperty:

    @given(
        sensitive_key=sensitive_key_strategy(),
        sensitive_value=st.text(alphabet="QWXYZ", min_size=5, max_size=20),
        level=log_level_strategy(),
    )
    @settings(max_examples=100)
    def test_sensitive_data_masked(self, sensitive_key: str, sensitive_value: str, level: LogLevel) -> None:
        """
        *For any* data whose keys name a credential, the values SHALL be
        replaced with "***MASKED***" both in memory and in the output.
        """
        output = StringIO()
        logger = EventLogger(output_format="json", output_stream=output, min_level=LogLevel.DEBUG)

        entry = logger.log(level, "RegistrarClient", "request", {sensitive_key: sensitive_value})

        assert entry.data[sensitive_key] == "***MASKED***"
        assert sensitive_value not in output.getvalue()

    @given(key=non_sensitive_key_strategy(), value=st.text(min_size=1, max_size=50))
    @settings(max_examples=100)
    def test_non_sensitive_data_not_masked(self, key: str, value: str) -> None:
        logger = EventLogger(output_format="json", output_stream=StringIO())

        entry = logger.info("RegistrarClient", "request", {key: value})

        assert entry.data[key] == value

    def test_nested_and_listed_credentials_masked(self) -> None:
        logger = EventLogger(output_format="json", output_stream=StringIO())

        entry = logger.info("RegistrarClient", "request", {
            "payload": {"apikey": "pk1_abc", "domain": "example.com"},
            "attempts": [{"secretapikey": "sk1_abc"}, "plain"],
        })

        assert entry.data["payload"] == {"apikey": "***MASKED***", "domain": "example.com"}
        assert entry.data["attempts"] == [{"secretapikey": "***MASKED***"}, "plain"]


class TestErrorContextProperty:

    def test_error_logs_include_error_context(self) -> None:
        logger = EventLogger(output_format="json", output_stream=StringIO())
        error = RateLimitError("Rate limit exceeded", reset_time=0, limit=10)

        entry = logger.log_error("RequestQueue", "Retries exhausted", error, {"endpoint": "/ping"})

        assert entry.level is LogLevel.ERROR
        assert entry.data["error_type"] == "RateLimitError"
        assert entry.data["error_code"] == "rate_limited"
        assert entry.data["error_message"] == "Rate limit exceeded"
        assert entry.data["endpoint"] == "/ping"

    def test_error_without_code(self) -> None:
        logger = EventLogger(output_format="json", output_stream=StringIO())

        entry = logger.log_error("RegistrarClient", "Unexpected", RuntimeError("boom"))

        assert entry.data["error_type"] == "RuntimeError"
        assert "error_code" not in entry.data


class TestClientLogging:

    def test_search_failures_are_logged_as_warnings(self) -> None:
        registrar = FakeRegistrar({
            "/pricing/get": {"status": "SUCCESS", "pricing": {}},
        })
        logger = EventLogger(output_format="json", output_stream=StringIO(), min_level=LogLevel.DEBUG)

        async def run():
            async with make_client(registrar, logger=logger) as client:
                return await client.search_domains("example")

        result = asyncio.run(run())

        warnings = [e for e in logger.entries if e.level is LogLevel.WARN]
        assert len(warnings) == 6
        assert all(e.component == "DomainSearchEngine" for e in warnings)
        assert len(result.errors) == 6
        assert result.candidates == []
