"""
Policy resolver.

Merges caller-supplied policy options over library defaults with a shallow,
per-key fallback. A key falls back to its default whenever the given value
is falsy, so `interval=0` is treated as unset and replaced by the default.
Callers relying on a zero interval must use a tiny positive value instead.
"""

from typing import Any, Mapping, TypeVar, Union

from pydantic import BaseModel

PolicyT = TypeVar("PolicyT", bound=BaseModel)

PolicyInput = Union[BaseModel, Mapping[str, Any], None]


def override(given: Mapping[str, Any], defaults: Mapping[str, Any]) -> dict[str, Any]:
    """Per-key fallback over every key present in `defaults`."""
    return {key: given.get(key) or value for key, value in defaults.items()}


def resolve(given: PolicyInput, defaults: PolicyT) -> PolicyT:
    """
    Resolve a possibly partial policy against its defaults.

    Args:
        given: Caller options (policy model, mapping, or None)
        defaults: Complete default policy

    Returns:
        `defaults` itself when `given` is absent or empty, otherwise a new
        policy of the same type built key by key from `defaults`.

    Raises:
        pydantic.ValidationError: If a given value violates the policy bounds
    """
    if isinstance(given, BaseModel):
        given = given.model_dump()

    if not given:
        return defaults

    return type(defaults)(**override(given, defaults.model_dump()))
