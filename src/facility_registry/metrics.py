from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, generate_latest


class RegistryMetrics:
    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()
        self._list_results = Counter(
            "facility_list_results_total",
            "Facility list results grouped by data source",
            labelnames=("source",),
            registry=self._registry,
        )
        self._saves = Counter(
            "facility_saves_total",
            "Facility writes grouped by action and outcome",
            labelnames=("action", "outcome"),
            registry=self._registry,
        )
        self._edit_log_failures = Counter(
            "facility_edit_log_failures_total",
            "Edit log entries that could not be written",
            registry=self._registry,
        )

    def observe_list(self, source: str) -> None:
        self._list_results.labels(source=source).inc()

    def observe_save(self, action: str, outcome: str) -> None:
        self._saves.labels(action=action, outcome=outcome).inc()

    def observe_edit_log_failure(self) -> None:
        self._edit_log_failures.inc()

    def render(self) -> str:
        return generate_latest(self._registry).decode("utf-8")
