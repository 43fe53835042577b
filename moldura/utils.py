#  -*- coding: utf-8 -*-
"""
Small helpers shared by the model layer: qualified names, runtime type
checks and the text transforms used to derive accessor names.
"""

from __future__ import annotations

import re

from datetime import date, datetime, timezone

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any


_CONSTANT_RENAME = re.compile(r'([a-z])([A-Z])|([^0-9A-Za-z_])')
_CAMEL_BOUNDARY = re.compile(r'([a-z0-9])([A-Z])')
_UNDERSCORES = re.compile(r'_+')


def get_full_qualified_name(cls: type) -> str:
    """
    Return ``"<module>.<qualname>"`` for a class, or just the qualname for
    builtins.
    """
    module = cls.__module__

    if module is None or module == 'builtins':
        return cls.__qualname__

    return f"{module}.{cls.__qualname__}"


def check_types(obj: Any,
                types: type | tuple[type, ...],
                can_be_none: bool = False,
                raise_error: bool = True) -> bool:
    """
    Check whether an object is an instance of expected types.

    Parameters
    ----------
    obj : object
        Value to test.
    types : type or tuple of type
        Expected type(s).
    can_be_none : bool, default False
        If True, ``None`` is accepted.
    raise_error : bool, default True
        If True, raises TypeError when the check fails.

    Returns
    -------
    bool

    Raises
    ------
    TypeError
        If ``raise_error`` is True and the check fails.
    """
    if can_be_none:
        if isinstance(types, tuple):
            types = (*types, None.__class__)
        else:
            types = (types, None.__class__)

    result = isinstance(obj, types)

    if not result and raise_error:

        if isinstance(types, tuple):
            cls_names = ', '.join(get_full_qualified_name(cls) for cls in types)
        else:
            cls_names = get_full_qualified_name(types)

        error_msg = f"Expected instance of one of the following classes: {cls_names}. " \
                    f"Given {get_full_qualified_name(type(obj))} instead"
        raise TypeError(error_msg)

    return result


def to_constant_name(text: str) -> str:
    """
    Convert a declared name to CONSTANT_CASE.

    An underscore is inserted at every lower-to-upper transition and every
    character that is not a letter, digit or underscore becomes an
    underscore.

    >>> to_constant_name('text/html')
    'TEXT_HTML'
    >>> to_constant_name('something!*&special')
    'SOMETHING___SPECIAL'
    >>> to_constant_name('darkRed')
    'DARK_RED'
    """
    def replace(match: re.Match) -> str:
        lower, upper, _ = match.groups()
        if lower:
            return f'{lower}_{upper}'
        return '_'

    return _CONSTANT_RENAME.sub(replace, text).upper()


def to_snake_case(text: str) -> str:
    """
    Convert a declared name to a snake_case identifier fragment.

    >>> to_snake_case('text/html')
    'text_html'
    >>> to_snake_case('something!*&special')
    'something_special'
    """
    snake = _UNDERSCORES.sub('_', to_constant_name(text)).strip('_').lower()
    return snake or '_'


def singularize(name: str) -> str:
    """
    Derive the singular form used to name per-item accessors of an array
    property.

    >>> singularize('colors'), singularize('categories'), singularize('item_list')
    ('color', 'category', 'item')
    """
    for suffix in ('_list', '_set', 'List', 'Set'):
        if name.endswith(suffix) and len(name) > len(suffix):
            return name[:-len(suffix)]

    if name.endswith('ies') and len(name) > 3:
        return name[:-3] + 'y'

    if name.endswith('s') and not name.endswith('ss') and len(name) > 1:
        return name[:-1]

    return name


def camel_to_snake(name: str) -> str:
    """Convert ``additionalProperties`` to ``additional_properties``."""
    return _CAMEL_BOUNDARY.sub(r'\1_\2', name).lower()


def to_iso_string(value: date) -> str:
    """
    Format a date as ``YYYY-MM-DDTHH:MM:SS.fffZ`` in UTC.

    Naive datetimes are taken to be in UTC. Plain dates are taken as UTC
    midnight.
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    value = value.astimezone(timezone.utc)

    return f"{value.strftime('%Y-%m-%dT%H:%M:%S')}.{value.microsecond // 1000:03d}Z"
