from __future__ import annotations

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider

_configured = False
_probe_filter_configured = False

PROBE_PATHS = ("/healthz", "/readyz")


class ProbeAccessLogFilter(logging.Filter):
    """Drops successful health probe lines from the uvicorn access log."""

    def __init__(self, ignored_paths: tuple[str, ...] = PROBE_PATHS) -> None:
        super().__init__()
        self._ignored_paths = {self._normalize_path(path) for path in ignored_paths}

    @staticmethod
    def _normalize_path(path: str) -> str:
        base = path.split("?", 1)[0]
        if base != "/" and base.endswith("/"):
            return base[:-1]
        return base

    def filter(self, record: logging.LogRecord) -> bool:
        args: Any = getattr(record, "args", ())
        if not isinstance(args, tuple) or len(args) < 5 or not isinstance(args[2], str):
            return True
        try:
            status = int(args[4])
        except (TypeError, ValueError):
            return True
        return not (status == 200 and self._normalize_path(args[2]) in self._ignored_paths)


def configure_otel(service_name: str) -> None:
    global _configured
    if _configured:
        return
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    trace.set_tracer_provider(provider)
    _configured = True


def get_tracer(name: str) -> trace.Tracer:
    return trace.get_tracer(name)


def configure_probe_access_log_filter(ignored_paths: tuple[str, ...] = PROBE_PATHS) -> None:
    global _probe_filter_configured
    if _probe_filter_configured:
        return
    logging.getLogger("uvicorn.access").addFilter(ProbeAccessLogFilter(ignored_paths=ignored_paths))
    _probe_filter_configured = True
