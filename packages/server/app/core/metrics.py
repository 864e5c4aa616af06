"""
Metrics collection and Prometheus-compatible exposition.

Per-organization series carry an ``eid`` label, so one org's queue depth
or denial rate never overwrites another's.
"""

from __future__ import annotations

import time
from collections import defaultdict
from typing import Any

PREFIX = "nexusguard_"

# name -> (type, help); unlisted metrics get a TYPE line and no HELP
CATALOG: dict[str, tuple[str, str]] = {
    "orgs_created_total": ("counter", "Organizations provisioned."),
    "eid_collisions_total": ("counter", "eid draws that hit an existing organization."),
    "roles_created_total": ("counter", "Roles added to a role table."),
    "role_edits_total": ("counter", "Role privilege replacements and toggles."),
    "members_added_total": ("counter", "Memberships created by direct add."),
    "folders_added_total": ("counter", "Folders provisioned."),
    "databases_added_total": ("counter", "Databases provisioned."),
    "requests_submitted_total": ("counter", "Join requests written or refreshed."),
    "requests_approved_total": ("counter", "Join requests moved to APPROVED."),
    "access_checks_total": ("counter", "Single-resource access decisions."),
    "access_denied_total": ("counter", "Access decisions that denied the caller."),
    "pending_requests": ("gauge", "Join requests awaiting approval, as last listed."),
}

LabelKey = tuple[tuple[str, str], ...]


def _label_key(labels: dict[str, Any]) -> LabelKey:
    return tuple(sorted((k, str(v)) for k, v in labels.items() if v is not None))


def _render_labels(key: LabelKey) -> str:
    if not key:
        return ""
    inner = ",".join(f'{k}="{v}"' for k, v in key)
    return "{" + inner + "}"


class MetricsCollector:
    """Labelled counters and gauges with Prometheus text export."""

    def __init__(self) -> None:
        self._counters: dict[str, dict[LabelKey, int]] = defaultdict(lambda: defaultdict(int))
        self._gauges: dict[str, dict[LabelKey, float]] = defaultdict(dict)
        self._start_time = time.time()

    def inc(self, name: str, value: int = 1, **labels: Any) -> None:
        self._counters[name][_label_key(labels)] += value

    def set_gauge(self, name: str, value: float, **labels: Any) -> None:
        self._gauges[name][_label_key(labels)] = value

    def get(self, name: str, **labels: Any) -> int | float:
        """Value of the one series matching exactly these labels (0 if unseen)."""
        key = _label_key(labels)
        if key in self._gauges.get(name, {}):
            return self._gauges[name][key]
        return self._counters.get(name, {}).get(key, 0)

    def total(self, name: str) -> int | float:
        """Sum over every series of a counter."""
        return sum(self._counters.get(name, {}).values())

    def reset(self) -> None:
        self._counters.clear()
        self._gauges.clear()

    def _header(self, name: str, default_type: str) -> list[str]:
        kind, help_text = CATALOG.get(name, (default_type, ""))
        lines = []
        if help_text:
            lines.append(f"# HELP {PREFIX}{name} {help_text}")
        lines.append(f"# TYPE {PREFIX}{name} {kind}")
        return lines

    def to_prometheus(self) -> str:
        """Export all metrics in Prometheus text format."""
        lines: list[str] = []
        for name in sorted(self._counters):
            lines.extend(self._header(name, "counter"))
            for key, value in sorted(self._counters[name].items()):
                lines.append(f"{PREFIX}{name}{_render_labels(key)} {value}")
        for name in sorted(self._gauges):
            lines.extend(self._header(name, "gauge"))
            for key, value in sorted(self._gauges[name].items()):
                lines.append(f"{PREFIX}{name}{_render_labels(key)} {value}")
        uptime = time.time() - self._start_time
        lines.append(f"# TYPE {PREFIX}uptime_seconds gauge")
        lines.append(f"{PREFIX}uptime_seconds {uptime:.1f}")
        return "\n".join(lines) + "\n"

    def to_dict(self) -> dict[str, Any]:
        return {
            "counters": {
                name: {_render_labels(k): v for k, v in series.items()}
                for name, series in self._counters.items()
            },
            "gauges": {
                name: {_render_labels(k): v for k, v in series.items()}
                for name, series in self._gauges.items()
            },
            "uptime_seconds": time.time() - self._start_time,
        }


metrics = MetricsCollector()
