"""Argument validation against a tool's declared input schema.

Validation never raises: it returns a ``ValidationOutcome`` listing every
problem found: missing required properties first, then per-property problems
in schema property order. Arguments that the schema does not
declare are ignored so older schemas keep accepting newer callers.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from shared.schemas.tools import InputSchema, PropertySchema


@dataclass(frozen=True)
class ValidationProblem:
    field: str
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ValidationOutcome:
    problems: tuple[ValidationProblem, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.problems

    @property
    def fields(self) -> list[str]:
        return [p.field for p in self.problems]

    def describe(self) -> str:
        return "; ".join(str(p) for p in self.problems)


def _is_absent(arguments: Mapping[str, Any], name: str) -> bool:
    # JSON null is treated the same as a missing key
    return arguments.get(name) is None


def _matches_type(value: Any, expected: str) -> bool:
    """Check a value against a JSON-schema primitive type name."""
    if expected == "string":
        return isinstance(value, str)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "number":
        # NaN and infinities are rejected
        if isinstance(value, float):
            return math.isfinite(value)
        return isinstance(value, int) and not isinstance(value, bool)
    if expected == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if expected == "object":
        return isinstance(value, Mapping)
    if expected == "array":
        return isinstance(value, list)
    # Types we don't know how to check are accepted.
    return True


def _check_property(name: str, prop: PropertySchema, value: Any) -> ValidationProblem | None:
    if not _matches_type(value, prop.type):
        return ValidationProblem(name, f"{name} must be of type {prop.type}")

    if prop.enum is not None and value not in prop.enum:
        allowed = ", ".join(str(v) for v in prop.enum)
        return ValidationProblem(name, f"{name} must be one of: {allowed}")

    if prop.type in ("number", "integer"):
        if prop.minimum is not None and value < prop.minimum:
            return ValidationProblem(name, f"{name} must be >= {prop.minimum:g}")
        if prop.maximum is not None and value > prop.maximum:
            return ValidationProblem(name, f"{name} must be <= {prop.maximum:g}")

    return None


def validate(schema: InputSchema, arguments: Any) -> ValidationOutcome:
    """Check ``arguments`` against ``schema``."""
    if not isinstance(arguments, Mapping):
        return ValidationOutcome((ValidationProblem("arguments", "arguments must be an object"),))

    problems: list[ValidationProblem] = []

    missing = [name for name in schema.required if _is_absent(arguments, name)]
    if missing:
        problems.extend(ValidationProblem(name, f"{name} is required") for name in missing)

    for name, prop in schema.properties.items():
        if _is_absent(arguments, name):
            continue
        problem = _check_property(name, prop, arguments[name])
        if problem is not None:
            problems.append(problem)

    return ValidationOutcome(tuple(problems))


def normalize(schema: InputSchema, arguments: Mapping[str, Any]) -> dict[str, Any]:
    """Return the arguments a handler receives.

    Only declared properties are kept; absent optional properties take their
    schema default when one is declared.
    """
    normalized: dict[str, Any] = {}
    for name, prop in schema.properties.items():
        if not _is_absent(arguments, name):
            normalized[name] = arguments[name]
        elif prop.default is not None:
            normalized[name] = prop.default
    return normalized
