"""
Projections from decoded response fields to the values client methods return.
"""

import json
from typing import Any, Callable

from ..exceptions import UnexpectedResponseError
from .lexicon import parse_lexicon


def project_names(value: Any) -> list[str]:
    """
    Project a JSON list to names.

    Items may be plain strings or objects with a "name" member.
    """
    if not isinstance(value, list):
        raise UnexpectedResponseError(f"Expected a list, got {type(value).__name__}")
    names = []
    for item in value:
        if isinstance(item, dict):
            if "name" not in item:
                raise UnexpectedResponseError(f"List item has no 'name' field: {item!r}")
            names.append(str(item["name"]))
        else:
            names.append(str(item))
    return names


def _as_object(value: Any) -> dict:
    # The server sometimes sends objects JSON-encoded inside a string
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise UnexpectedResponseError(f"Expected a JSON object, got {value!r}") from exc
    if not isinstance(value, dict):
        raise UnexpectedResponseError(f"Expected an object, got {type(value).__name__}")
    return value


def project_counts(value: Any) -> dict[str, int]:
    """Project an object (or JSON-encoded object) of word frequencies."""
    try:
        return {key: int(count) for key, count in _as_object(value).items()}
    except (TypeError, ValueError) as exc:
        raise UnexpectedResponseError(f"Expected integer counts: {exc}") from exc


def project_mapping(value: Any) -> dict[str, str]:
    return {key: str(item) for key, item in _as_object(value).items()}


def project_scalar(value: Any) -> Any:
    return value


def project_lexicon(value: Any) -> dict[str, str]:
    if not isinstance(value, str):
        raise UnexpectedResponseError(f"Expected lexicon text, got {type(value).__name__}")
    return parse_lexicon(value)


# Projections for result shapes read from a named response field
PROJECTIONS: dict[str, Callable[[Any], Any]] = {
    "names": project_names,
    "counts": project_counts,
    "mapping": project_mapping,
    "scalar": project_scalar,
    "lexicon": project_lexicon,
}
