"""
RuleGate Exception Hierarchy

Domain-specific exceptions for condition registration and rule matching.
All exceptions include error codes for tracking and logging.

Exception codes follow the pattern: RG_<CATEGORY>_<SPECIFIC>

Propagation policy:
- Registration errors (bad catalogue) are raised immediately.
- Resolution errors (a resolver callback failed) are captured per rule,
  logged, and never raised out of an evaluation call.
- Malformed thresholds are not exceptions at all: the comparison is False.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class RuleGateError(Exception):
    """
    Base exception for all RuleGate errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (RG_*)
        details: Additional context about the error
        set_id: Associated condition set ID if applicable
    """
    message: str
    code: str = "RG_INTERNAL_ERROR"
    details: dict[str, Any] = field(default_factory=dict)
    set_id: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.set_id:
            parts.append(f"(set: {self.set_id})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for logging/CLI output."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.set_id:
            result["set_id"] = self.set_id
        return result


# =============================================================================
# Registration Errors
# =============================================================================

@dataclass
class RegistrationError(RuleGateError):
    """A condition definition could not be registered."""
    code: str = "RG_REGISTRATION_ERROR"


@dataclass
class DuplicateConditionError(RegistrationError):
    """A condition with the same name is already registered in the catalogue."""
    code: str = "RG_DUPLICATE_CONDITION"


@dataclass
class UnknownTypeError(RegistrationError):
    """The condition declares a value type that does not exist."""
    code: str = "RG_UNKNOWN_TYPE"


@dataclass
class InvalidConditionError(RegistrationError):
    """Condition definition is structurally invalid."""
    code: str = "RG_INVALID_CONDITION"


@dataclass
class CatalogueNotFoundError(RuleGateError):
    """No catalogue is registered for the requested condition set."""
    code: str = "RG_CATALOGUE_NOT_FOUND"


# =============================================================================
# Evaluation Errors
# =============================================================================

@dataclass
class ResolutionError(RuleGateError):
    """
    A value resolver callback raised while computing a live value.

    Never raised out of evaluation: the failing rule is treated as FALSE
    and the error is attached to its RuleEvaluation.
    """
    code: str = "RG_RESOLUTION_ERROR"
    condition: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.condition:
            result["condition"] = self.condition
        return result


# =============================================================================
# Rule Pack Errors
# =============================================================================

@dataclass
class PackLoadError(RuleGateError):
    """Failed to read a rule pack from disk."""
    code: str = "RG_PACK_LOAD_ERROR"


@dataclass
class PackValidationError(RuleGateError):
    """Rule pack schema or reference validation failed."""
    code: str = "RG_PACK_VALIDATION_ERROR"


@dataclass
class PackVersionMismatch(RuleGateError):
    """Rule pack schema version is not compatible with this release."""
    code: str = "RG_PACK_VERSION_MISMATCH"
