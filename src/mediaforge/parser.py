#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/parser.py
"""Transformation URL grammar.

A transformation URL names an asset and an ordered chain of directives::

    /{domain}/upload/{t1}/{t2}/.../{public_id}[?query]

Each ``tN`` segment is a comma-joined list whose first element is the
operation type (``c_fill``, ``q_auto``, ``so_5``) followed by ``key_value``
parameters. Segments without the ``_`` separator are incidental path
noise and are dropped rather than rejected.

Examples
--------
    >>> parsed = parse_transformation_url("/image/upload/c_fill,w_200,h_200/photo.jpg")
    >>> parsed.public_id
    'photo.jpg'
    >>> parsed.transformations[0].type
    'c_fill'
    >>> dict(parsed.transformations[0].params)
    {'w': 200, 'h': 200}

"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional
from urllib.parse import unquote

from mediaforge.constants import (
    CHAIN_DELIMITER,
    COMPONENT_SEPARATOR,
    PARAM_SEPARATOR,
    QUERY_MARKER,
    ParamValue,
)
from mediaforge.exceptions import MalformedUrlError

logger = logging.getLogger(__name__)

# Decimal with optional sign, fraction and exponent. Nothing else is numeric.
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\Z", re.ASCII)
_INTEGER_RE = re.compile(r"^[+-]?\d+\Z", re.ASCII)


def coerce_value(raw: str) -> ParamValue:
    """Coerce a raw parameter value to a number when it is one.

    Parameters
    ----------
    raw : str
        Text following the ``_`` separator in a parameter token

    Returns
    -------
    int, float or str
        ``int`` for integral literals, ``float`` for other decimal literals,
        otherwise ``raw`` unchanged. Never raises.

    Examples
    --------
        >>> coerce_value("600")
        600
        >>> coerce_value("1.5")
        1.5
        >>> coerce_value("auto")
        'auto'
        >>> coerce_value("")
        ''

    """
    if not _NUMBER_RE.match(raw):
        return raw
    if _INTEGER_RE.match(raw):
        return int(raw)
    return float(raw)


@dataclass(frozen=True)
class TransformationSpec:
    """One directive of a transformation chain.

    Parameters
    ----------
    type : str
        Operation tag, taken whole from the first element of the segment
    params : Mapping[str, int | float | str]
        Coerced parameters; wrapped in a read-only mapping

    """

    type: str
    params: Mapping[str, ParamValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate the tag and freeze the parameter mapping."""
        if not self.type:
            raise ValueError("Transformation type cannot be empty")
        if not isinstance(self.params, MappingProxyType):
            object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable view of the spec."""
        return {"type": self.type, "params": dict(self.params)}


TransformationChain = tuple[TransformationSpec, ...]


@dataclass(frozen=True)
class ParsedUrl:
    """Result of parsing a transformation URL.

    Unpacks as ``(public_id, transformations)``.
    """

    public_id: str
    transformations: TransformationChain
    domain: Optional[str] = None

    def __iter__(self) -> Iterator[object]:
        yield self.public_id
        yield self.transformations


def parse_component(token: str) -> Optional[TransformationSpec]:
    """Parse one path segment into a spec.

    Returns None for segments that carry no directive: those without the
    parameter separator, and those whose type part is empty.
    """
    if PARAM_SEPARATOR not in token:
        logger.debug(f"Dropping path segment without parameters: {token!r}")
        return None

    type_token, *param_tokens = token.split(COMPONENT_SEPARATOR)
    if not type_token:
        logger.debug(f"Dropping path segment without a type: {token!r}")
        return None

    params: dict[str, ParamValue] = {}
    for pair in param_tokens:
        key, sep, value = pair.partition(PARAM_SEPARATOR)
        if not sep or not key:
            logger.debug(f"Ignoring malformed parameter {pair!r} in {token!r}")
            continue
        params[key] = coerce_value(value)

    return TransformationSpec(type=type_token, params=params)


def parse_transformation_url(raw_path: str) -> ParsedUrl:
    """Split a transformation URL into its asset id and directive chain.

    Parameters
    ----------
    raw_path : str
        Request path, optionally with a query string

    Returns
    -------
    ParsedUrl
        Public id, ordered chain and the domain segment (if any)

    Raises
    ------
    MalformedUrlError
        If no segment equals the chain delimiter, or nothing follows it

    """
    path = raw_path.split(QUERY_MARKER, 1)[0]
    parts = path.split("/")
    try:
        delimiter_index = parts.index(CHAIN_DELIMITER)
    except ValueError:
        raise MalformedUrlError(url=raw_path) from None

    if delimiter_index == len(parts) - 1:
        raise MalformedUrlError("Transformation URL does not name an asset.", url=raw_path)

    public_id = unquote(parts[-1])
    if not public_id:
        raise MalformedUrlError("Transformation URL does not name an asset.", url=raw_path)

    chain = tuple(
        spec
        for spec in (parse_component(token) for token in parts[delimiter_index + 1 : -1])
        if spec is not None
    )
    domain = (parts[delimiter_index - 1] or None) if delimiter_index > 0 else None

    logger.debug(f"Parsed {raw_path!r}: public_id={public_id!r}, {len(chain)} transformation(s)")
    return ParsedUrl(public_id=public_id, transformations=chain, domain=domain)


__all__ = [
    "ParsedUrl",
    "TransformationChain",
    "TransformationSpec",
    "coerce_value",
    "parse_component",
    "parse_transformation_url",
]
