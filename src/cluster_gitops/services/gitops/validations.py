"""Named pre-flight validation results."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one named check, with a hint for fixing a failure."""

    name: str
    remediation: str
    error: Exception | None = None

    @property
    def passed(self) -> bool:
        return self.error is None


def run_validations(results: Iterable[ValidationResult]) -> list[ValidationResult]:
    """Log each result and return the failed ones."""
    failed: list[ValidationResult] = []
    for result in results:
        if result.passed:
            logger.info("validation_passed", name=result.name)
            continue
        logger.error(
            "validation_failed",
            name=result.name,
            error=str(result.error),
            remediation=result.remediation,
        )
        failed.append(result)
    return failed
