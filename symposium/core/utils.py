"""Shared utilities for Symposium core modules: error taxonomy, validation, JSON parsing."""

from __future__ import annotations

import json
import re


class ValidationError(Exception):
    """Raised when caller input is missing or malformed."""


class InvalidPositionError(ValidationError):
    """Raised when a reorder target falls outside 1..N."""


class NotFoundError(Exception):
    """Raised when an entity does not exist or is not owned by the caller."""


def require_text(value: str | None, field_name: str, max_length: int | None = None) -> str:
    """Return the trimmed value, or raise ValidationError if it is blank or too long."""
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required and cannot be empty")
    text = value.strip()
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{field_name} exceeds {max_length} character limit")
    return text


def normalize_tag_ids(tag_ids) -> tuple[int, ...]:
    """Coerce an active-tag selection to a sorted tuple of unique ints."""
    from symposium.core.constants import MAX_ACTIVE_TAGS

    if not tag_ids:
        return ()
    try:
        ids = {int(t) for t in tag_ids}
    except (TypeError, ValueError) as e:
        raise ValidationError(f"invalid tag id in selection: {e}") from e
    if len(ids) > MAX_ACTIVE_TAGS:
        raise ValidationError(f"maximum {MAX_ACTIVE_TAGS} active tags allowed")
    return tuple(sorted(ids))


def strip_markdown_fences(text: str) -> str:
    """Remove markdown code fences from LLM response text."""
    text = re.sub(r"^```(?:json)?\s*", "", text)
    text = re.sub(r"\s*```$", "", text)
    return text


def parse_json_object(raw: str) -> dict | None:
    """Parse an LLM response as a JSON object, tolerating markdown fences.

    Returns None if the text is not a JSON object.
    """
    text = strip_markdown_fences(raw.strip())
    try:
        result = json.loads(text)
    except json.JSONDecodeError:
        return None
    return result if isinstance(result, dict) else None
