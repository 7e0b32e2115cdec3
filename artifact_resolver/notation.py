"""
Parse and format coordinate notation.

Accepted forms::

    group:artifact:version
    group:artifact:type:version
    group:artifact:type:classifier:version
"""

from __future__ import annotations

from typing import Union

from .errors import NotationError
from .models import Coordinate


DEFAULT_TYPE = "jar"


def parse(text: str, default_type: str = DEFAULT_TYPE) -> Coordinate:
    """Parse `text` into a Coordinate.

    Args:
        text: Colon separated notation
        default_type: Type used for the three-field form

    Returns:
        Parsed Coordinate

    Raises:
        NotationError: On a wrong field count or an empty required field
    """
    if not isinstance(text, str):
        raise NotationError(f"Notation must be a string, got {type(text).__name__}")

    fields = [part.strip() for part in text.strip().split(":")]
    classifier = None
    if len(fields) == 3:
        group, artifact, version = fields
        packaging = default_type
    elif len(fields) == 4:
        group, artifact, packaging, version = fields
    elif len(fields) == 5:
        group, artifact, packaging, classifier, version = fields
        classifier = classifier or None
    else:
        raise NotationError(
            f"Bad notation {text!r}, expected group:artifact[:type[:classifier]]:version"
        )

    for name, value in (("group", group), ("artifact", artifact), ("type", packaging), ("version", version)):
        if not value:
            raise NotationError(f"Bad notation {text!r}: empty {name}")

    return Coordinate(group, artifact, packaging, version, classifier)


def format(coordinate: Coordinate) -> str:  # noqa: A001 - mirrors parse()
    """Format a Coordinate as group:artifact:type[:classifier]:version."""
    return coordinate.notation


def coerce(value: Union[str, Coordinate], default_type: str = DEFAULT_TYPE) -> Coordinate:
    """Return `value` as a Coordinate, parsing it when given as text."""
    if isinstance(value, Coordinate):
        return value
    return parse(value, default_type)
