"""
Run specification checks.

A run type may carry a JSON specification with any of:
- timeLimits: {minimum, maximum, target} in seconds
- penalties: {maxAllowedSeconds}
- procedure: {phases: [{phase, name, steps, timeLimit}]}
- phases / tasks / totalEstimatedTime (older spec layouts)

These helpers compare a run's clean time and penalty load against it.
Zero or missing limits are treated as "not specified".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


DEFAULT_PENALTY_THRESHOLD_SECONDS = 30
TARGET_DEVIATION_WARN_PERCENT = 20
TARGET_DEVIATION_EXCELLENT_PERCENT = 5
SLOW_PROCEDURE_RATIO = 1.2
FAST_PROCEDURE_RATIO = 0.8


@dataclass(frozen=True)
class SpecViolation:
    type: str
    message: str
    severity: str  # "warning" | "error"


@dataclass
class SpecValidationResult:
    """Outcome of checking one run against its specification."""

    violations: list[SpecViolation] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)
    time_within_limits: bool | None = None

    @property
    def is_valid(self) -> bool:
        """Only error-severity violations invalidate a run."""
        return not any(v.severity == "error" for v in self.violations)

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "violations": [
                {"type": v.type, "message": v.message, "severity": v.severity}
                for v in self.violations
            ],
            "compliance": {"time_within_limits": self.time_within_limits},
            "insights": list(self.insights),
        }


@dataclass(frozen=True)
class SpecComparison:
    """Actual clean time against the specification's expected time."""

    expected_time: float | None
    actual_time: float
    time_difference: float | None
    time_difference_percent: float | None
    within_target_range: bool | None

    def to_dict(self) -> dict:
        return {
            "expected_time": self.expected_time,
            "actual_time": self.actual_time,
            "time_difference": self.time_difference,
            "time_difference_percent": self.time_difference_percent,
            "within_target_range": self.within_target_range,
        }


def _phase_total(phases: list[Mapping[str, Any]]) -> float:
    return sum(phase.get("timeLimit") or 0 for phase in phases)


def validate_run_against_spec(
    clean_time: float,
    penalty_seconds: float,
    spec: Mapping[str, Any],
) -> SpecValidationResult:
    """
    Check a run against its run-type specification.

    Args:
        clean_time: Run clean time (seconds)
        penalty_seconds: Run penalty seconds
        spec: JSON specification of the run type

    Returns:
        SpecValidationResult with violations and insights
    """
    result = SpecValidationResult()

    limits = spec.get("timeLimits")
    if limits:
        minimum = limits.get("minimum")
        maximum = limits.get("maximum")
        target = limits.get("target")

        if minimum and clean_time < minimum:
            result.violations.append(SpecViolation(
                type="time_below_minimum",
                message=f"Clean time ({clean_time}s) is below minimum expected ({minimum}s)",
                severity="warning",
            ))
        if maximum and clean_time > maximum:
            result.violations.append(SpecViolation(
                type="time_exceeds_maximum",
                message=f"Clean time ({clean_time}s) exceeds maximum expected ({maximum}s)",
                severity="warning",
            ))
        if target:
            deviation_percent = abs(clean_time - target) / target * 100
            if deviation_percent > TARGET_DEVIATION_WARN_PERCENT:
                result.insights.append(
                    f"Performance deviates {deviation_percent:.1f}% from target time ({target}s)"
                )
            elif deviation_percent < TARGET_DEVIATION_EXCELLENT_PERCENT:
                result.insights.append("Excellent performance - within 5% of target time")

        result.time_within_limits = (
            (not minimum or clean_time >= minimum)
            and (not maximum or clean_time <= maximum)
        )

    penalties = spec.get("penalties")
    if penalties and penalty_seconds > 0:
        threshold = penalties.get("maxAllowedSeconds") or DEFAULT_PENALTY_THRESHOLD_SECONDS
        if penalty_seconds > threshold:
            result.violations.append(SpecViolation(
                type="excessive_penalties",
                message=f"Penalty load ({penalty_seconds}s) exceeds threshold ({threshold}s)",
                severity="error",
            ))
        else:
            result.insights.append(
                f"Penalty load of {penalty_seconds}s is within acceptable range"
            )

    phases = (spec.get("procedure") or {}).get("phases")
    if phases:
        expected = _phase_total(phases)
        if expected > 0:
            ratio = clean_time / expected
            if ratio > SLOW_PROCEDURE_RATIO:
                result.insights.append(
                    f"Run took {(ratio - 1) * 100:.0f}% longer than expected procedure time"
                )
            elif ratio < FAST_PROCEDURE_RATIO:
                result.insights.append(
                    f"Run completed {(1 - ratio) * 100:.0f}% faster than expected"
                )

    return result


def get_expected_time_from_spec(spec: Mapping[str, Any]) -> float | None:
    """
    Expected time in seconds, or None if the spec does not say.

    Looks at timeLimits.target, then the sum of procedure phase limits,
    then totalEstimatedTime.
    """
    target = (spec.get("timeLimits") or {}).get("target")
    if target:
        return target

    phases = (spec.get("procedure") or {}).get("phases")
    if phases:
        total = _phase_total(phases)
        return total if total > 0 else None

    return spec.get("totalEstimatedTime") or None


def get_procedure_steps_from_spec(spec: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Procedure phases from whichever layout the spec uses."""
    phases = (spec.get("procedure") or {}).get("phases")
    if phases:
        return list(phases)
    if spec.get("phases"):
        return list(spec["phases"])
    if spec.get("tasks"):
        return [
            {"name": task.get("name"), "timeLimit": task.get("estimatedTime")}
            for task in spec["tasks"]
        ]
    return []


def compare_to_spec(clean_time: float, spec: Mapping[str, Any]) -> SpecComparison:
    """Compare a run's clean time with the specification's expected time."""
    expected = get_expected_time_from_spec(spec)
    limits = spec.get("timeLimits")

    within = None
    if expected and limits:
        minimum = limits.get("minimum") or 0
        maximum = limits.get("maximum") or float("inf")
        within = minimum <= clean_time <= maximum

    return SpecComparison(
        expected_time=expected,
        actual_time=clean_time,
        time_difference=clean_time - expected if expected else None,
        time_difference_percent=(clean_time - expected) / expected * 100 if expected else None,
        within_target_range=within,
    )
