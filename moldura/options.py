#  -*- coding: utf-8 -*-
"""
Per-call options shared by coercion, wrapping and cleaning.

Every fallible operation takes an ``options`` argument that may be:

- ``None``: throwing mode with default settings,
- a ``list``: the error accumulator itself,
- a mapping of option names to values, or
- an ``Options`` instance.

``Options.of`` normalises all of these. The presence of an accumulator
(``errors``) switches the operation from throwing mode to accumulating
mode: failures are appended as human-readable strings and the offending
value is left absent.
"""

from __future__ import annotations

import logging

from collections.abc import Mapping
from contextlib import contextmanager

from moldura.errors import ModelError
from moldura.utils import check_types

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Iterator


logger = logging.getLogger(__name__)

NAIVE_TIMEZONES = ('utc', 'local')


class Options:
    """
    Options for a single coercion/wrap/clean call.

    Parameters
    ----------
    errors : list of str, optional
        Error accumulator. When given, failures are appended here instead of
        raised.
    strict : bool, default False
        When True, primitive adapters reject values that are not already of
        their kind instead of converting them.
    attribute : Attribute, optional
        The attribute currently being coerced. Maintained by the model layer
        through ``for_attribute``; it gives array adapters access to the item
        type and error messages access to the attribute name.
    naive_timezone : {'utc', 'local'}, default 'utc'
        How ``Date`` interprets ISO-8601 strings without a ``Z`` suffix.

    Examples
    --------
    >>> errors = []
    >>> Person.wrap({'age': 'abc'}, errors)       # doctest: +SKIP
    >>> Person.wrap(raw, {'strict': True})         # doctest: +SKIP
    >>> Person.wrap(raw, Options(errors=errors, naive_timezone='local'))  # doctest: +SKIP
    """

    # ========== ========== ========== ========== ========== class attributes
    __slots__ = ('errors', 'strict', 'attribute', 'naive_timezone')

    # ========== ========== ========== ========== ========== special methods
    def __init__(self,
                 errors: list[str] | None = None,
                 strict: bool = False,
                 attribute: Any = None,
                 naive_timezone: str = 'utc') -> None:

        check_types(errors, list, can_be_none=True)

        if naive_timezone not in NAIVE_TIMEZONES:
            raise ValueError(f"Invalid naive_timezone {naive_timezone!r}. Expected one of {NAIVE_TIMEZONES}")

        self.errors: list[str] | None = errors
        self.strict: bool = bool(strict)
        self.attribute: Any = attribute
        self.naive_timezone: str = naive_timezone

    def __repr__(self) -> str:
        return f'Options(errors={self.errors!r}, strict={self.strict}, naive_timezone={self.naive_timezone!r})'

    # ========== ========== ========== ========== ========== public methods
    @classmethod
    def of(cls, options: Options | list[str] | Mapping[str, Any] | None) -> Options:
        """Normalise any accepted ``options`` argument into an ``Options``."""
        if options is None:
            return cls()

        if isinstance(options, Options):
            return options

        if isinstance(options, list):
            return cls(errors=options)

        if isinstance(options, Mapping):
            return cls(**options)

        raise TypeError(f'Invalid options: expected None, a list of errors, a mapping '
                        f'or Options, got {type(options).__name__}')

    @contextmanager
    def for_attribute(self, attribute: Any) -> Iterator[Options]:
        """Run a block of work in the context of ``attribute``."""
        previous = self.attribute
        self.attribute = attribute

        try:
            yield self
        finally:
            self.attribute = previous

    def report(self, error: ModelError) -> None:
        """
        Record ``error`` in the accumulator, or raise it in throwing mode.

        Raises
        ------
        ModelError
            ``error`` itself, if no accumulator is present.
        """
        if self.errors is None:
            raise error

        logger.debug('accumulated: %s', error)
        self.errors.append(str(error))

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def accumulating(self) -> bool:
        """bool: True if failures are collected instead of raised."""
        return self.errors is not None

    @property
    def attribute_name(self) -> str | None:
        """str or None: name of the attribute in context, if any."""
        return getattr(self.attribute, 'name', None)
