"""Unit tests for telemetry service"""

from unittest.mock import MagicMock, patch

from src.services.errors import OverallTimeoutError
from src.services.telemetry import TelemetryService


class TestTelemetryService:
    """Test telemetry service initialization and logging"""

    @patch("src.services.telemetry.config")
    def test_telemetry_service_disabled(self, mock_config):
        """Test that telemetry can be disabled"""
        mock_config.otel_logging_enabled = False
        mock_config.otel_tracing_enabled = False

        service = TelemetryService()

        assert service.logging_enabled is False
        assert service.tracing_enabled is False
        assert service.otel_logger is None

    @patch("src.services.telemetry.config")
    @patch("src.services.telemetry.set_logger_provider")
    def test_telemetry_service_enabled(self, mock_set_logger_provider, mock_config):
        """Test that telemetry initializes when enabled"""
        mock_config.otel_logging_enabled = True
        mock_config.otel_tracing_enabled = False
        mock_config.otel_endpoint = "http://localhost:4318"
        mock_config.otel_service_name = "test-service"
        mock_config.otel_service_version = "1.0.0"

        service = TelemetryService()

        assert service.logging_enabled is True
        assert service.tracing_enabled is False
        assert service.logger_provider is not None

    @patch("src.services.telemetry.config")
    @patch("src.services.telemetry.trace.set_tracer_provider")
    def test_telemetry_tracing_enabled(self, mock_set_tracer_provider, mock_config):
        """Test that tracing initializes when enabled"""
        mock_config.otel_logging_enabled = False
        mock_config.otel_tracing_enabled = True
        mock_config.otel_endpoint = "http://localhost:4318"
        mock_config.otel_service_name = "test-service"
        mock_config.otel_service_version = "1.0.0"

        service = TelemetryService()

        assert service.logging_enabled is False
        assert service.tracing_enabled is True
        assert service.tracer_provider is not None

    @patch("src.services.telemetry.config")
    @patch("src.services.telemetry.set_logger_provider")
    @patch("src.services.telemetry.trace.set_tracer_provider")
    def test_telemetry_both_enabled(
        self,
        mock_set_tracer_provider,
        mock_set_logger_provider,
        mock_config,
    ):
        """Test that both logging and tracing can be enabled simultaneously"""
        mock_config.otel_logging_enabled = True
        mock_config.otel_tracing_enabled = True
        mock_config.otel_endpoint = "http://localhost:4318"
        mock_config.otel_service_name = "test-service"
        mock_config.otel_service_version = "1.0.0"

        service = TelemetryService()

        assert service.logging_enabled is True
        assert service.tracing_enabled is True
        assert service.logger_provider is not None
        assert service.tracer_provider is not None

    @patch("src.services.telemetry.config")
    def test_log_generation_when_disabled(self, mock_config):
        """Test that logging does nothing when disabled"""
        mock_config.otel_logging_enabled = False
        mock_config.otel_tracing_enabled = False

        service = TelemetryService()

        # Should not raise
        service.log_generation(
            endpoint="generate_docs_route",
            repo_url="facebook/react",
            parameters={"context_options": None, "force_refresh": False},
            response={"documentation": "# Docs"},
        )

    @patch("src.services.telemetry.config")
    @patch("src.services.telemetry.set_logger_provider")
    def test_log_generation_success(self, mock_set_logger_provider, mock_config):
        """Test logging a successful documentation request"""
        mock_config.otel_logging_enabled = True
        mock_config.otel_tracing_enabled = False
        mock_config.otel_endpoint = "http://localhost:4318"
        mock_config.otel_service_name = "test-service"
        mock_config.otel_service_version = "1.0.0"

        mock_otel_logger = MagicMock()

        service = TelemetryService()
        service.otel_logger = mock_otel_logger

        service.log_generation(
            endpoint="generate_docs_route",
            repo_url="https://github.com/facebook/react",
            parameters={
                "context_options": {"quick_mode": False, "custom_prompt": "Be brief"},
                "force_refresh": True,
            },
            response={"documentation": "# React"},
            duration_ms=123.4,
        )

        assert mock_otel_logger.emit.called
        call_kwargs = mock_otel_logger.emit.call_args.kwargs

        body = call_kwargs["body"]
        assert "[generate_docs_route]" in body
        assert "SUCCESS" in body
        assert 'repo="https://github.com/facebook/react"' in body
        assert "time=123.4ms" in body

        attrs = call_kwargs["attributes"]
        assert attrs["docs.endpoint"] == "generate_docs_route"
        assert attrs["request.force_refresh"] is True
        assert attrs["request.options_supplied"] is True
        assert attrs["request.option.quick_mode"] is False
        assert attrs["request.option.custom_prompt"] is True
        assert attrs["response.success"] is True
        assert attrs["response.from_cache"] is False
        assert attrs["response.documentation_length"] == len("# React")
        # Raw prompt text stays out of the attributes
        assert "Be brief" not in str(attrs)

    @patch("src.services.telemetry.config")
    @patch("src.services.telemetry.set_logger_provider")
    def test_log_generation_cache_hit(self, mock_set_logger_provider, mock_config):
        """Test that cache hits are marked in body and attributes"""
        mock_config.otel_logging_enabled = True
        mock_config.otel_tracing_enabled = False
        mock_config.otel_endpoint = "http://localhost:4318"
        mock_config.otel_service_name = "test-service"
        mock_config.otel_service_version = "1.0.0"

        mock_otel_logger = MagicMock()

        service = TelemetryService()
        service.otel_logger = mock_otel_logger

        service.log_generation(
            endpoint="generate_docs",
            repo_url="facebook/react",
            parameters={"context_options": None, "force_refresh": False},
            response={"documentation": "# React", "fromCache": True},
        )

        call_kwargs = mock_otel_logger.emit.call_args.kwargs
        assert "cached" in call_kwargs["body"]
        assert call_kwargs["attributes"]["response.from_cache"] is True
        assert call_kwargs["attributes"]["request.options_supplied"] is False

    @patch("src.services.telemetry.config")
    @patch("src.services.telemetry.set_logger_provider")
    def test_log_generation_with_error(self, mock_set_logger_provider, mock_config):
        """Test logging a failed request with a timeout error"""
        mock_config.otel_logging_enabled = True
        mock_config.otel_tracing_enabled = False
        mock_config.otel_endpoint = "http://localhost:4318"
        mock_config.otel_service_name = "test-service"
        mock_config.otel_service_version = "1.0.0"

        mock_otel_logger = MagicMock()

        service = TelemetryService()
        service.otel_logger = mock_otel_logger

        error = OverallTimeoutError(55)
        service.log_generation(
            endpoint="generate_docs_route",
            repo_url="facebook/react",
            parameters={"context_options": None, "force_refresh": False},
            response=None,
            error=error,
        )

        assert mock_otel_logger.emit.called
        call_kwargs = mock_otel_logger.emit.call_args.kwargs

        assert "FAILED" in call_kwargs["body"]
        assert "OverallTimeoutError" in call_kwargs["body"]

        attrs = call_kwargs["attributes"]
        assert attrs["response.success"] is False
        assert attrs["error.type"] == "OverallTimeoutError"
        assert attrs["error.is_timeout"] is True
        assert "timed out" in attrs["error.message"]

    @patch("src.services.telemetry.config")
    @patch("src.services.telemetry.set_logger_provider")
    def test_log_generation_truncates_long_repo_url(self, mock_set_logger_provider, mock_config):
        """Test that very long repository references are truncated in log body"""
        mock_config.otel_logging_enabled = True
        mock_config.otel_tracing_enabled = False
        mock_config.otel_endpoint = "http://localhost:4318"
        mock_config.otel_service_name = "test-service"
        mock_config.otel_service_version = "1.0.0"

        mock_otel_logger = MagicMock()

        service = TelemetryService()
        service.otel_logger = mock_otel_logger

        long_url = "https://github.com/owner/" + "a" * 300

        service.log_generation(
            endpoint="generate_docs_route",
            repo_url=long_url,
            parameters={"context_options": None, "force_refresh": False},
            error=ValueError("bad"),
        )

        call_kwargs = mock_otel_logger.emit.call_args.kwargs
        assert "..." in call_kwargs["body"]
        assert long_url not in call_kwargs["body"]

    @patch("src.services.telemetry.config")
    @patch("src.services.telemetry.set_logger_provider")
    def test_log_generation_swallows_emit_errors(self, mock_set_logger_provider, mock_config):
        """Test that exporter failures never propagate to the request"""
        mock_config.otel_logging_enabled = True
        mock_config.otel_tracing_enabled = False
        mock_config.otel_endpoint = "http://localhost:4318"
        mock_config.otel_service_name = "test-service"
        mock_config.otel_service_version = "1.0.0"

        mock_otel_logger = MagicMock()
        mock_otel_logger.emit.side_effect = RuntimeError("exporter down")

        service = TelemetryService()
        service.otel_logger = mock_otel_logger

        service.log_generation(
            endpoint="generate_docs",
            repo_url="facebook/react",
            parameters={},
            response={"documentation": "x"},
        )
