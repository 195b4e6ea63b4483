"""
Declarative attribute schemas for resources and data sources.

A schema lists the attributes a resource accepts, their types and
validators. ``Schema.validate`` applies defaults and returns a cleaned copy
of the desired state, or raises ``ValidationError`` listing every problem
found.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Literal, Mapping

from ziaprovider.core.errors import ValidationError

AttributeType = Literal["string", "int", "bool", "string_set", "string_list", "block_set"]

# A validator receives the attribute path and value and returns a problem or None.
Validator = Callable[[str, Any], "str | None"]

_MISSING: Any = object()


def one_of(*allowed: str) -> Validator:
    choices = tuple(allowed)

    def _validate(path: str, value: Any) -> str | None:
        if value in ("", None):
            return None
        if value not in choices:
            return f"{path}: expected one of {', '.join(choices)}, got {value!r}"
        return None

    return _validate


def length_between(minimum: int, maximum: int) -> Validator:
    def _validate(path: str, value: Any) -> str | None:
        if value is None:
            return None
        if not minimum <= len(value) <= maximum:
            return f"{path}: length must be between {minimum} and {maximum}, got {len(value)}"
        return None

    return _validate


def max_items(limit: int) -> Validator:
    def _validate(path: str, value: Any) -> str | None:
        if value is not None and len(value) > limit:
            return f"{path}: at most {limit} items allowed, got {len(value)}"
        return None

    return _validate


def each_matches(pattern: str, label: str) -> Validator:
    compiled = re.compile(pattern)

    def _validate(path: str, value: Any) -> str | None:
        bad = [item for item in value or () if not compiled.fullmatch(str(item))]
        if bad:
            return f"{path}: not a valid {label}: {', '.join(map(str, bad[:5]))}"
        return None

    return _validate


@dataclass(frozen=True)
class Attribute:
    """One schema attribute."""

    name: str
    type: AttributeType
    description: str = ""
    required: bool = False
    computed: bool = False
    default: Any = _MISSING
    validators: tuple[Validator, ...] = ()
    # Nested attributes for ``block_set``.
    block: tuple["Attribute", ...] = ()

    @property
    def has_default(self) -> bool:
        return self.default is not _MISSING


def _check_type(attr: Attribute, path: str, value: Any, problems: list[str]) -> Any:
    if attr.type == "string":
        if not isinstance(value, str):
            problems.append(f"{path}: expected string, got {type(value).__name__}")
        return value
    if attr.type == "int":
        if isinstance(value, bool) or not isinstance(value, int):
            if isinstance(value, str) and value.isdigit():
                return int(value)
            problems.append(f"{path}: expected integer, got {type(value).__name__}")
        return value
    if attr.type == "bool":
        if not isinstance(value, bool):
            problems.append(f"{path}: expected boolean, got {type(value).__name__}")
        return value
    if attr.type in ("string_set", "string_list"):
        if not isinstance(value, (list, tuple, set, frozenset)):
            problems.append(f"{path}: expected list of strings, got {type(value).__name__}")
            return value
        items = list(value)
        for index, item in enumerate(items):
            if not isinstance(item, str):
                problems.append(f"{path}[{index}]: expected string, got {type(item).__name__}")
        return items
    # block_set
    if not isinstance(value, (list, tuple)):
        problems.append(f"{path}: expected list of blocks, got {type(value).__name__}")
        return value
    blocks = []
    for index, raw in enumerate(value):
        block_path = f"{path}[{index}]"
        if not isinstance(raw, Mapping):
            problems.append(f"{block_path}: expected mapping, got {type(raw).__name__}")
            continue
        blocks.append(_validate_attributes(attr.block, raw, problems, prefix=f"{block_path}."))
    return blocks


def _validate_attributes(
    attributes: Iterable[Attribute],
    desired: Mapping[str, Any],
    problems: list[str],
    *,
    prefix: str = "",
) -> dict[str, Any]:
    known = {attr.name: attr for attr in attributes}
    cleaned: dict[str, Any] = {}

    for name in desired:
        if name not in known:
            problems.append(f"{prefix}{name}: unsupported attribute")

    for name, attr in known.items():
        path = f"{prefix}{name}"
        value = desired.get(name, _MISSING)
        if value is _MISSING or value is None:
            if attr.required:
                problems.append(f"{path}: attribute is required")
            elif attr.has_default:
                cleaned[name] = attr.default
            continue
        if attr.computed and not attr.required:
            problems.append(f"{path}: attribute is computed and cannot be set")
            continue
        before = len(problems)
        value = _check_type(attr, path, value, problems)
        if len(problems) == before:
            for validator in attr.validators:
                problem = validator(path, value)
                if problem:
                    problems.append(problem)
        cleaned[name] = value

    return cleaned


@dataclass(frozen=True)
class Schema:
    attributes: tuple[Attribute, ...] = field(default_factory=tuple)

    def validate(self, desired: Mapping[str, Any], *, resource_type: str = "") -> dict[str, Any]:
        problems: list[str] = []
        cleaned = _validate_attributes(self.attributes, desired, problems)
        if problems:
            raise ValidationError(
                f"invalid configuration for {resource_type or 'resource'}",
                details={"resource_type": resource_type, "problem_count": len(problems)},
                problems=problems,
            )
        return cleaned

    def describe(self) -> dict[str, str]:
        described = {}
        for attr in self.attributes:
            flags = []
            if attr.required:
                flags.append("required")
            if attr.computed:
                flags.append("computed")
            suffix = f" ({', '.join(flags)})" if flags else ""
            described[attr.name] = f"{attr.type}{suffix}: {attr.description}".rstrip(": ")
        return described
