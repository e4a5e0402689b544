"""OpenTelemetry logging and tracing for documentation requests"""

import logging
from datetime import datetime, timezone
from typing import Any

from opentelemetry import trace
from opentelemetry._logs import SeverityNumber, set_logger_provider
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from src.config import config

logger = logging.getLogger(__name__)

OPTION_FLAGS = (
    "include_readme",
    "include_source_code",
    "include_issues",
    "include_pull_requests",
    "quick_mode",
)


class TelemetryService:
    """Handle OpenTelemetry logging and tracing for documentation requests"""

    def __init__(self):
        self.logging_enabled = config.otel_logging_enabled
        self.tracing_enabled = config.otel_tracing_enabled
        self.logger_provider = None
        self.tracer_provider = None
        self.otel_logger = None

        if self.logging_enabled:
            try:
                self._initialize_logging()
            except Exception as e:
                logger.warning(f"Failed to initialize OTel logging: {e}. Logging disabled.")
                self.logging_enabled = False

        if self.tracing_enabled:
            try:
                self._initialize_tracing()
            except Exception as e:
                logger.warning(f"Failed to initialize OTel tracing: {e}. Tracing disabled.")
                self.tracing_enabled = False

    def _resource(self) -> Resource:
        return Resource(
            attributes={
                SERVICE_NAME: config.otel_service_name,
                SERVICE_VERSION: config.otel_service_version,
            }
        )

    def _initialize_logging(self) -> None:
        """Initialize OpenTelemetry logging with OTLP log exporter"""
        self.logger_provider = LoggerProvider(resource=self._resource())

        log_endpoint = config.otel_endpoint
        if not log_endpoint.endswith("/v1/logs"):
            log_endpoint = f"{log_endpoint.rstrip('/')}/v1/logs"

        self.logger_provider.add_log_record_processor(
            BatchLogRecordProcessor(OTLPLogExporter(endpoint=log_endpoint))
        )
        set_logger_provider(self.logger_provider)
        self.otel_logger = self.logger_provider.get_logger(__name__)

        logger.info(f"OpenTelemetry logging initialized with endpoint: {log_endpoint}")

    def _initialize_tracing(self) -> None:
        """Initialize OpenTelemetry tracing with OTLP trace exporter"""
        self.tracer_provider = TracerProvider(resource=self._resource())

        trace_endpoint = config.otel_endpoint
        if not trace_endpoint.endswith("/v1/traces"):
            trace_endpoint = f"{trace_endpoint.rstrip('/')}/v1/traces"

        self.tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=trace_endpoint))
        )
        trace.set_tracer_provider(self.tracer_provider)

        # httpx instrumentation happens in _ensure_instrumentation_initialized(),
        # before the GitHub client is created

        logger.info(f"OpenTelemetry tracing initialized with endpoint: {trace_endpoint}")

    def log_generation(
        self,
        endpoint: str,
        repo_url: str | None,
        parameters: dict[str, Any],
        response: dict[str, Any] | None = None,
        error: Exception | None = None,
        duration_ms: float | None = None,
    ) -> None:
        """
        Log one documentation request and its outcome

        Args:
            endpoint: Entry point that served the request (route or tool name)
            repo_url: Repository reference as supplied by the caller
            parameters: Request parameters (context_options, force_refresh)
            response: Response payload (if successful)
            error: The error (if failed)
            duration_ms: Total handling time
        """
        if not self.logging_enabled or not self.otel_logger:
            return

        try:
            # Attributes carry LOW CARDINALITY data only
            attributes: dict[str, str | int | float | bool] = {
                "docs.endpoint": endpoint,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "request.force_refresh": bool(parameters.get("force_refresh", False)),
            }

            options = parameters.get("context_options")
            attributes["request.options_supplied"] = options is not None
            if options:
                for flag in OPTION_FLAGS:
                    if flag in options:
                        attributes[f"request.option.{flag}"] = bool(options[flag])
                attributes["request.option.custom_prompt"] = bool(options.get("custom_prompt"))

            success = error is None
            attributes["response.success"] = success

            if response:
                attributes["response.from_cache"] = bool(response.get("fromCache", False))
                attributes["response.documentation_length"] = len(
                    response.get("documentation", "")
                )

            if duration_ms is not None:
                attributes["response.duration_ms"] = float(duration_ms)

            if error:
                attributes["error.type"] = type(error).__name__
                attributes["error.is_timeout"] = bool(getattr(error, "is_timeout", False))
                error_message = str(error)
                if len(error_message) > 500:
                    error_message = error_message[:500] + "..."
                attributes["error.message"] = error_message

            # Body carries HIGH CARDINALITY data
            log_body_parts = [f"[{endpoint}]", "SUCCESS" if success else "FAILED"]
            if repo_url:
                truncated = repo_url if len(repo_url) <= 200 else repo_url[:200] + "..."
                log_body_parts.append(f'repo="{truncated}"')
            if response and response.get("fromCache"):
                log_body_parts.append("cached")
            if duration_ms is not None:
                log_body_parts.append(f"time={duration_ms:.1f}ms")
            if error:
                log_body_parts.append(f"error={type(error).__name__}")

            severity = logging.ERROR if error else logging.INFO

            self.otel_logger.emit(
                body=" ".join(log_body_parts),
                severity_number=SeverityNumber(self._severity_to_number(severity)),
                attributes=attributes,
                timestamp=int(datetime.now(timezone.utc).timestamp() * 1e9),
            )

        except Exception as e:
            # Telemetry errors never break the request
            logger.warning(f"Failed to log telemetry: {e}")

    def _severity_to_number(self, level: int) -> int:
        """Convert Python logging level to OpenTelemetry severity number"""
        if level >= logging.CRITICAL:
            return 21  # FATAL
        elif level >= logging.ERROR:
            return 17  # ERROR
        elif level >= logging.WARNING:
            return 13  # WARN
        elif level >= logging.INFO:
            return 9  # INFO
        else:
            return 5  # DEBUG


_telemetry_service: TelemetryService | None = None
_instrumentation_initialized = False


def _ensure_instrumentation_initialized() -> None:
    """Ensure httpx instrumentation is initialized early"""
    global _instrumentation_initialized
    if not _instrumentation_initialized and config.otel_tracing_enabled:
        try:
            HTTPXClientInstrumentor().instrument()
            _instrumentation_initialized = True
            logger.info("HTTP request tracing instrumentation initialized")
        except Exception as e:
            logger.warning(f"Failed to initialize HTTP tracing instrumentation: {e}")


def get_telemetry_service() -> TelemetryService:
    """Get or create the global telemetry service instance"""
    global _telemetry_service
    _ensure_instrumentation_initialized()
    if _telemetry_service is None:
        _telemetry_service = TelemetryService()
    return _telemetry_service
