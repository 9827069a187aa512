"""Validation models shared by the TSC builder and the CLI.

A ValidationResult is a flat list of issues. Errors block use of whatever was
validated; warnings are reported and otherwise ignored.
"""

from enum import Enum

from pydantic import BaseModel, Field


class Severity(str, Enum):
    """How serious a validation issue is."""

    ERROR = "error"
    WARNING = "warning"


class ValidationIssue(BaseModel):
    """A single finding produced while validating a declaration."""

    severity: Severity
    category: str = Field(description="Machine-readable issue category")
    location: str = Field(description="Path of the offending node, e.g. 'TSCRoot/Weather'")
    message: str
    suggestion: str | None = None

    def __str__(self) -> str:
        return f"[{self.category}] {self.location}: {self.message}"


class ValidationResult(BaseModel):
    """Outcome of a validation pass."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def valid(self) -> bool:
        """True when no ERROR-level issue was found."""
        return not self.errors

    def add_error(
        self,
        category: str,
        location: str,
        message: str,
        suggestion: str | None = None,
    ) -> None:
        self.issues.append(
            ValidationIssue(
                severity=Severity.ERROR,
                category=category,
                location=location,
                message=message,
                suggestion=suggestion,
            )
        )

    def add_warning(
        self,
        category: str,
        location: str,
        message: str,
        suggestion: str | None = None,
    ) -> None:
        self.issues.append(
            ValidationIssue(
                severity=Severity.WARNING,
                category=category,
                location=location,
                message=message,
                suggestion=suggestion,
            )
        )

    def merge(self, other: "ValidationResult") -> None:
        self.issues.extend(other.issues)
