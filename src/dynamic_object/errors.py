"""Error types for dynamic object dispatch, validation, and codecs."""

from __future__ import annotations

import msgspec

from serde_msgspec import StructBaseStrict, to_builtins


class ShapeMismatch(StructBaseStrict, frozen=True):
    """Declared versus actual shape of one field or nested element."""

    field: str
    expected: str
    actual: str
    detail: str | None = None

    def describe(self) -> str:
        """Return a one-line description of the mismatch.

        Returns
        -------
        str
            Human-readable mismatch summary.
        """
        text = f"{self.field} (expected {self.expected}, got {self.actual})"
        if self.detail:
            text = f"{text}: {self.detail}"
        return text


class ValidationReport(StructBaseStrict, frozen=True):
    """Every fault found while validating one instance."""

    schema: str
    missing: tuple[str, ...] = ()
    mismatched: tuple[ShapeMismatch, ...] = ()

    @property
    def ok(self) -> bool:
        """Return True when no faults were recorded."""
        return not self.missing and not self.mismatched

    def summary(self) -> str:
        """Return a message naming every missing and mismatched field.

        Returns
        -------
        str
            Aggregate fault summary.
        """
        parts: list[str] = []
        if self.missing:
            parts.append(f"missing required fields: {', '.join(self.missing)}")
        if self.mismatched:
            described = "; ".join(mismatch.describe() for mismatch in self.mismatched)
            parts.append(f"mismatched fields: {described}")
        return f"{self.schema} failed validation: " + "; ".join(parts)


class DynamicObjectError(Exception):
    """Base class for dynamic object errors."""


class RequiredFieldMissingError(DynamicObjectError, ValueError):
    """Raised when a required field resolves to None."""

    def __init__(self, field_name: str, *, schema: str | None = None) -> None:
        self.field_name = field_name
        self.schema = schema
        owner = f" on {schema}" if schema else ""
        super().__init__(f"Required field {field_name}{owner} was null")


class ValidationFailedError(DynamicObjectError, ValueError):
    """Raised by ``validate()`` with every fault it found."""

    def __init__(self, report: ValidationReport) -> None:
        self.report = report
        super().__init__(report.summary())

    @property
    def missing(self) -> tuple[str, ...]:
        """Return the names of missing required fields."""
        return self.report.missing

    @property
    def mismatched(self) -> dict[str, ShapeMismatch]:
        """Return mismatches keyed by field path."""
        return {mismatch.field: mismatch for mismatch in self.report.mismatched}

    def payload(self) -> dict[str, object]:
        """Return a builtin payload for diagnostics.

        Returns
        -------
        dict[str, object]
            Error type plus the full validation report.
        """
        return {
            "type": self.__class__.__name__,
            "report": to_builtins(self.report),
        }


class SchemaDefinitionError(DynamicObjectError, TypeError):
    """Raised when a schema type cannot be classified."""


class TagRegistryError(DynamicObjectError, ValueError):
    """Raised when a tag binding conflicts with an existing one."""


class CodecError(DynamicObjectError, ValueError):
    """Raised when a payload cannot be decoded or encoded."""

    @classmethod
    def from_msgspec(cls, exc: msgspec.MsgspecError) -> CodecError:
        """Wrap a msgspec decode or validation error.

        Returns
        -------
        CodecError
            Error carrying the msgspec message.
        """
        return cls(f"{exc.__class__.__name__}: {exc}")


class ConfigurationError(DynamicObjectError, ValueError):
    """Raised when runtime settings fail validation."""


__all__ = [
    "CodecError",
    "ConfigurationError",
    "DynamicObjectError",
    "RequiredFieldMissingError",
    "SchemaDefinitionError",
    "ShapeMismatch",
    "TagRegistryError",
    "ValidationFailedError",
    "ValidationReport",
]
