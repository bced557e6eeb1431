#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/operations/metadata.py
"""Metadata classes for transformation operations.

An operation is registered under the tag that appears in URLs (``c_fill``,
``q_auto``) together with a handler and a description of the parameters it
reads. The parameter specs drive validation before the handler runs and
the ``list-operations`` CLI output.

Examples
--------
Describe an image operation:

    >>> from mediaforge.operations import OperationMetadata, ParameterSpec
    >>> METADATA = OperationMetadata(
    ...     name="c_fill",
    ...     description="Cover-fit resize to exactly w x h",
    ...     handler=fill,
    ...     parameters={
    ...         "w": ParameterSpec(type=NUMBER, required=True, help="Target width"),
    ...         "h": ParameterSpec(type=NUMBER, required=True, help="Target height"),
    ...     },
    ... )

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

from mediaforge.constants import ParamValue
from mediaforge.exceptions import OperationError

logger = logging.getLogger(__name__)

NUMBER: tuple[type, ...] = (int, float)

TypeSpec = Union[type, tuple[type, ...]]


def _type_name(type_spec: TypeSpec) -> str:
    if isinstance(type_spec, tuple):
        if type_spec == NUMBER:
            return "number"
        return " | ".join(t.__name__ for t in type_spec)
    return type_spec.__name__


@dataclass
class ParameterSpec:
    """Specification for an operation parameter.

    Parameters
    ----------
    type : type or tuple of types
        Accepted Python type(s) of the coerced value. ``NUMBER`` accepts
        both ints and floats.
    default : Any, optional
        Value filled in when the URL omits the parameter
    help : str, optional
        Help text describing the parameter (used by ``list-operations``)
    required : bool, default = False
        Whether the URL must provide this parameter
    choices : list, optional
        List of valid choices for this parameter
    validator : callable, optional
        Custom validation function: takes value, returns bool or raises ValueError

    """

    type: TypeSpec = object
    default: Any = None
    help: str = ""
    required: bool = False
    choices: Optional[list[Any]] = None
    validator: Optional[Callable[[Any], bool]] = None

    @property
    def type_name(self) -> str:
        """Readable name of the accepted type(s)."""
        return _type_name(self.type)

    def validate(self, value: Any) -> bool:
        """Validate a parameter value.

        Raises
        ------
        ValueError
            If value is invalid

        """
        # bool is an int subclass; URLs never produce one, but plugins might
        if isinstance(value, bool) or not isinstance(value, self.type):
            raise ValueError(f"expected {self.type_name}, got {value!r}")

        if self.choices is not None and value not in self.choices:
            raise ValueError(f"value must be one of {self.choices}, got {value!r}")

        if self.validator is not None and not self.validator(value):
            raise ValueError(f"validation failed for value {value!r}")

        return True


@dataclass
class OperationMetadata:
    """Metadata for a transformation operation.

    Parameters
    ----------
    name : str
        Tag matched against ``TransformationSpec.type`` (e.g. ``"c_fill"``)
    description : str
        Human-readable description of what the operation does
    handler : callable
        ``(target, params) -> target``. For images the target is the encoded
        buffer; for video it is the accumulated ``VideoCommand``.
    parameters : dict[str, ParameterSpec], default = empty dict
        Parameters the handler reads
    tags : list[str], default = empty list
        Tags for categorization (e.g. ``["resize"]``)
    author : str, optional
        Operation author, for plugin operations

    """

    name: str
    description: str
    handler: Callable[[Any, Mapping[str, ParamValue]], Any]
    parameters: dict[str, ParameterSpec] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    author: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate metadata after initialization."""
        if not self.name:
            raise ValueError("Operation name cannot be empty")
        if not callable(self.handler):
            raise ValueError(f"handler for '{self.name}' must be callable")

    def prepare_params(self, params: Mapping[str, ParamValue]) -> dict[str, ParamValue]:
        """Validate URL parameters and fill declared defaults.

        Parameters not declared in ``parameters`` are passed through
        untouched so handlers may read optional extras.

        Raises
        ------
        OperationError
            If a required parameter is missing or a value is invalid

        """
        prepared = dict(params)
        for param_name, param_spec in self.parameters.items():
            if param_name in prepared:
                try:
                    param_spec.validate(prepared[param_name])
                except ValueError as e:
                    raise OperationError(
                        f"{self.name}: invalid parameter '{param_name}': {e}", operation=self.name
                    ) from e
            elif param_spec.required:
                raise OperationError(f"{self.name}: missing required parameter '{param_name}'", operation=self.name)
            elif param_spec.default is not None:
                prepared[param_name] = param_spec.default
        return prepared

    def apply(self, target: Any, params: Mapping[str, ParamValue]) -> Any:
        """Run the handler against ``target`` with validated parameters."""
        return self.handler(target, self.prepare_params(params))


__all__ = [
    "NUMBER",
    "OperationMetadata",
    "ParameterSpec",
]
