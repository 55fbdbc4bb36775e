"""
OpenTelemetry tracing for the ticketing API.

Spans come from three places:
- FastAPI auto-instrumentation (one server span per request, SSE included)
- Redis auto-instrumentation when the Kvrocks store is selected
- Manual spans in use cases (`trace.get_tracer(__name__)`)

Export goes to OTLP when OTEL_EXPORTER_OTLP_ENDPOINT is set, and to the console
when OTEL_CONSOLE_EXPORT=true. With neither, spans are created and dropped.
"""

import os
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.sdk.resources import (
    DEPLOYMENT_ENVIRONMENT,
    SERVICE_NAME,
    SERVICE_VERSION,
    Resource,
)
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON


# Scrapes and probes would otherwise dominate the trace list
UNTRACED_PATHS = 'health,metrics'


class TracingConfig:
    """
    Usage:
        tracing = TracingConfig(service_name='ticketing-api', service_version='0.1.0')
        tracing.setup()
        ...
        tracing.shutdown()
    """

    def __init__(
        self,
        *,
        service_name: str,
        service_version: str = 'unknown',
        otlp_endpoint: str | None = None,
        enable_console: bool = False,
    ) -> None:
        self.service_name = service_name
        self.service_version = service_version
        self.deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')
        self.otlp_endpoint = otlp_endpoint or os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
        self.enable_console = (
            enable_console or os.getenv('OTEL_CONSOLE_EXPORT', 'false').lower() == 'true'
        )

        self._provider: TracerProvider | None = None
        self._redis_instrumented = False

    @property
    def exporting(self) -> bool:
        return bool(self.otlp_endpoint) or self.enable_console

    def setup(self) -> None:
        resource = Resource(
            attributes={
                SERVICE_NAME: self.service_name,
                SERVICE_VERSION: self.service_version,
                DEPLOYMENT_ENVIRONMENT: self.deploy_env,
            }
        )

        # Tail sampling belongs in the collector; keep every span here
        self._provider = TracerProvider(resource=resource, sampler=ALWAYS_ON)

        if self.otlp_endpoint:
            self._provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=self.otlp_endpoint))
            )
        if self.enable_console:
            self._provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

        trace.set_tracer_provider(self._provider)

    def instrument_fastapi(self, *, app: Any, excluded_urls: str = UNTRACED_PATHS) -> None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=excluded_urls)

    def instrument_redis(self) -> None:
        if not self._redis_instrumented:
            RedisInstrumentor().instrument()
            self._redis_instrumented = True

    def shutdown(self) -> None:
        if self._redis_instrumented:
            RedisInstrumentor().uninstrument()
            self._redis_instrumented = False
        if self._provider:
            self._provider.shutdown()
