"""Merging staged directives into the accumulated transform config."""

from collections.abc import Mapping
from typing import Any

from imagemill.logging_config import get_logger

logger = get_logger(__name__)


def copy_config(value: Any) -> Any:
    """Copy nested mappings and lists into plain containers."""
    if isinstance(value, Mapping):
        return {k: copy_config(v) for k, v in value.items()}
    if isinstance(value, list):
        return [copy_config(v) for v in value]
    return value


def merge_directive(
    new_directive: Mapping[str, Any] | None,
    existing_config: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """
    Merge a newly staged directive on top of an existing config.

    For each key of `new_directive`:
      - both sides are mappings: merge them recursively with the same rule
      - otherwise: the new value replaces the existing one

    Keys only present in `existing_config` are carried over untouched, so
    updating one transform type never erases another type's parameters,
    and a new `prompt` for "recolor" keeps a previously set `to`.

    A mapping on one side and a scalar on the other is not an error: the
    newer value wins. This is deliberate policy, logged at debug level.

    Neither argument is mutated. Mapping values taken from `new_directive`
    are copied so the result never aliases a staged directive.

    Args:
        new_directive: The staged directive (may be None)
        existing_config: The accumulated config (may be None)

    Returns:
        A new merged config dict
    """
    if existing_config is None:
        return copy_config(new_directive or {})

    merged = dict(existing_config)
    if not new_directive:
        return merged

    for key, new_value in new_directive.items():
        old_value = merged.get(key)
        new_is_mapping = isinstance(new_value, Mapping)
        old_is_mapping = isinstance(old_value, Mapping)

        if new_is_mapping and old_is_mapping:
            merged[key] = merge_directive(new_value, old_value)
            continue

        if key in merged and new_is_mapping != old_is_mapping:
            logger.debug(
                "Merge type conflict at '%s': replacing %s with %s",
                key,
                type(old_value).__name__,
                type(new_value).__name__,
            )
        merged[key] = copy_config(new_value)

    return merged


def stage_parameter(
    staged: Mapping[str, Any] | None,
    transform_type: str,
    parameter: str,
    value: Any,
) -> dict[str, Any]:
    """Fold one parameter edit into the staged directive."""
    return merge_directive({transform_type: {parameter: value}}, staged)
