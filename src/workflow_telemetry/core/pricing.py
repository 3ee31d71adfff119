# src/workflow_telemetry/core/pricing.py
"""Per-minute runner pricing for estimated job cost.

Static table of hosted-runner rates (USD per billable minute), keyed by
runner OS and core count. The core count comes from the primary runner
label. Self-hosted and unrecognized runners have no price: callers must
omit the cost metric entirely rather than record zero.
"""

from __future__ import annotations

import math
import re
from types import MappingProxyType

from workflow_telemetry.contracts.records import RunnerInfo

PRICE_PER_MINUTE: MappingProxyType[tuple[str, int], float] = MappingProxyType(
    {
        ("Linux", 2): 0.008,
        ("Linux", 4): 0.016,
        ("Linux", 8): 0.032,
        ("Linux", 16): 0.064,
        ("Linux", 32): 0.128,
        ("Linux", 64): 0.256,
        ("Windows", 2): 0.016,
        ("Windows", 4): 0.032,
        ("Windows", 8): 0.064,
        ("Windows", 16): 0.128,
        ("Windows", 32): 0.256,
        ("Windows", 64): 0.512,
        ("macOS", 3): 0.08,
        ("macOS", 12): 0.12,
    }
)

# Standard-size hosted runners for labels without an explicit core count
_STANDARD_CORES: dict[str, int] = {"Linux": 2, "Windows": 2, "macOS": 3}
_LARGE_MACOS_CORES = 12

_LABEL_OS_PREFIXES: dict[str, str] = {"ubuntu": "Linux", "windows": "Windows", "macos": "macOS"}
_CORES_PATTERN = re.compile(r"(\d+)[-_]?cores?\b", re.IGNORECASE)

_MS_PER_MINUTE = 60_000


def parse_core_count(runner_os: str, primary_label: str) -> int | None:
    """Core count implied by a runner label, or None if the label is not a hosted one."""
    match = _CORES_PATTERN.search(primary_label)
    if match:
        return int(match.group(1))

    label = primary_label.lower()
    label_os = next((os_name for prefix, os_name in _LABEL_OS_PREFIXES.items() if label.startswith(prefix)), None)
    if label_os is None or label_os != runner_os:
        return None
    if label_os == "macOS" and label.endswith(("-large", "-xlarge")):
        return _LARGE_MACOS_CORES
    return _STANDARD_CORES[label_os]


def billable_minutes(duration_ms: int) -> int:
    """Whole billable minutes: rounded up, never less than one."""
    return max(1, math.ceil(duration_ms / _MS_PER_MINUTE))


def price_per_minute(runner: RunnerInfo) -> float | None:
    if runner.os not in _STANDARD_CORES or not runner.labels:
        return None
    if any(label.lower() == "self-hosted" for label in runner.labels):
        return None
    cores = parse_core_count(runner.os, runner.labels[0])
    if cores is None:
        return None
    return PRICE_PER_MINUTE.get((runner.os, cores))


def estimate_job_cost(runner: RunnerInfo, duration_ms: int) -> float | None:
    """Estimated USD cost of a job, or None when the runner has no known price."""
    rate = price_per_minute(runner)
    if rate is None:
        return None
    return round(billable_minutes(duration_ms) * rate, 6)
