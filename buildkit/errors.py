"""Error and diagnostic types shared by the kernel and its callers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias

DiagnosticCategory: TypeAlias = Literal["resolution_warning", "cleanup_failure"]
ALLOWED_DIAGNOSTIC_CATEGORIES: tuple[str, ...] = ("resolution_warning", "cleanup_failure")


class ConfigurationError(ValueError):
    """Fatal configuration problem (duplicate descriptor names, malformed overrides)."""


@dataclass(frozen=True)
class Diagnostic:
    """Non-fatal problem recorded while planning; the descriptor is still produced."""

    category: DiagnosticCategory
    descriptor: str
    message: str

    def __post_init__(self) -> None:
        if self.category not in ALLOWED_DIAGNOSTIC_CATEGORIES:
            raise ValueError(f"Invalid diagnostic category: {self.category}")

    def to_dict(self) -> dict[str, str]:
        return {"category": self.category, "descriptor": self.descriptor, "message": self.message}


def resolution_warning(descriptor: str, message: str) -> Diagnostic:
    return Diagnostic(category="resolution_warning", descriptor=descriptor, message=message)


def cleanup_failure(descriptor: str, message: str) -> Diagnostic:
    return Diagnostic(category="cleanup_failure", descriptor=descriptor, message=message)
