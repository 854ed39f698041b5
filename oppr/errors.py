"""
Exception types raised by the OPPR engine.

Configuration problems are collected and reported as a batch; formula input
problems are raised on the first violation.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ValidationIssue:
    """A single violated rule: where, why, and what would satisfy it."""
    field: str
    message: str
    suggested_value: Optional[float] = None

    def __str__(self) -> str:
        if self.suggested_value is None:
            return f"{self.field}: {self.message}"
        return f"{self.field}: {self.message} (suggested: {self.suggested_value})"


class OpprError(Exception):
    """Base exception for engine errors"""
    pass


class ConfigurationValidationError(OpprError, ValueError):
    """Raised when a configuration override violates one or more invariants"""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = list(issues)
        summary = "; ".join(str(issue) for issue in self.issues)
        super().__init__(f"Invalid configuration ({len(self.issues)} issue(s)): {summary}")


class InputDomainError(OpprError, ValueError):
    """Raised when formula input is malformed (bad positions, empty fields, unknown tiers)"""
    pass
