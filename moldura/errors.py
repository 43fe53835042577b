#  -*- coding: utf-8 -*-
"""
Error taxonomy of the model layer.

Every fallible operation in moldura accepts an optional error accumulator
(see ``moldura.options.Options``). Without one, the first failure raises one
of the exceptions below. With one, the same failure is rendered with
``str()`` and appended to the accumulator instead.

Hierarchy
---------
::

    ModelError
    ├── CoercionError
    │   └── InvalidEnumValueError
    ├── UnrecognizedAttributeError
    ├── InstantiationError
    ├── ArrayWrapError
    └── ModelDefinitionError
"""

from __future__ import annotations

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any


__all__ = [
    "ModelError",
    "CoercionError",
    "InvalidEnumValueError",
    "UnrecognizedAttributeError",
    "InstantiationError",
    "ArrayWrapError",
    "ModelDefinitionError",
]


class ModelError(Exception):
    """Base class for every error raised by moldura."""


class CoercionError(ModelError):
    """
    A value could not be converted to the declared type of a property.

    Parameters
    ----------
    value : object
        The offending value.
    attribute : str, optional
        Name of the attribute being coerced, if the coercion happened in the
        context of a property.
    message : str, optional
        Extra detail appended to the standard message.

    Attributes
    ----------
    value : object
    attribute : str or None
    source : type
        Marker identifying the model layer as the origin of the error. It is
        set to ``moldura.Model`` by ``Model.coercion_error``.

    Notes
    -----
    The rendered message is ``"[<attribute>: ]Invalid value: <value>"``,
    followed by ``" - <message>"`` when a detail message was given.
    """

    def __init__(self, value: Any, attribute: str | None = None, message: str | None = None) -> None:
        self.value: Any = value
        self.attribute: str | None = attribute
        self.detail: str | None = message
        self.source: type | None = None

        text = f'{attribute}: ' if attribute else ''
        text += f'Invalid value: {value}'

        if message:
            text += f' - {message}'

        super().__init__(text)


class InvalidEnumValueError(CoercionError):
    """No declared value of an enum matches the given input."""


class UnrecognizedAttributeError(ModelError):
    """Input data contained a key with no matching declared attribute."""

    def __init__(self, key: str) -> None:
        self.key: str = key
        super().__init__(f'Unrecognized attribute: {key}')


class InstantiationError(ModelError):
    """Direct construction of a type whose ``constructable`` flag is off."""


class ArrayWrapError(ModelError):
    """A raw sequence was handed to a model type that is not an array."""


class ModelDefinitionError(ModelError, TypeError):
    """A type configuration could not be compiled."""
