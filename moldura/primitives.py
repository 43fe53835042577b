#  -*- coding: utf-8 -*-
"""
Primitive type adapters.

Primitive adapters are model types that never produce a wrapper
(``wrapped = False``) and cannot be instantiated. Each one only implements
the coercion contract for one kind of plain value: ``None`` passes through,
anything else is converted or rejected with a ``CoercionError``.

With ``Options(strict=True)`` every adapter rejects values that are not
already of its kind instead of converting them.

+-------------+-----------+----------------------------------------------+
| adapter     | type name | python builtins resolving to it              |
+=============+===========+==============================================+
| String      | string    | str                                          |
| Number      | number    | float                                        |
| Integer     | integer   | int                                          |
| Boolean     | boolean   | bool                                         |
| Date        | date      | datetime.datetime, datetime.date             |
| Function    | function  | collections.abc.Callable                     |
| Object      | object    | dict, object                                 |
| AnyValue    | any       | typing.Any                                   |
| Array       | array     | list                                         |
+-------------+-----------+----------------------------------------------+
"""

from __future__ import annotations

import collections.abc
import math
import numbers
import re

from datetime import date, datetime, timezone

import numpy
import pandas

from moldura.array import Array
from moldura.model import Model
from moldura.utils import to_iso_string

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any

from moldura.options import Options


ISO_DATE_FORMAT = re.compile(r'^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z)?$')


class Primitive(Model):
    """Base of the primitive adapters."""

    wrapped = False
    constructable = False
    primitive = True


class String(Primitive):

    type_name = 'string'

    def coerce(cls, value: Any, options: Options) -> str | None:
        if value is None or isinstance(value, str):
            return value

        if options.strict:
            cls.coercion_error(value, options)

        if isinstance(value, bool):
            # same spelling Boolean parses back
            return 'true' if value else 'false'

        return str(value)


class Number(Primitive):

    type_name = 'number'

    def coerce(cls, value: Any, options: Options) -> int | float | None:
        if value is None:
            return None

        if isinstance(value, numpy.generic):
            value = value.item()

        if options.strict and (isinstance(value, bool) or not isinstance(value, (int, float))):
            cls.coercion_error(value, options)

        if isinstance(value, bool):
            return int(value)

        if isinstance(value, numbers.Real):
            number = value

        elif isinstance(value, str):
            text = value.strip()

            try:
                number = int(text)
            except ValueError:
                try:
                    number = float(text)
                except ValueError:
                    cls.coercion_error(value, options)

        else:
            cls.coercion_error(value, options)

        if isinstance(number, float) and not math.isfinite(number):
            cls.coercion_error(value, options)

        return number


class Integer(Primitive):

    type_name = 'integer'

    def coerce(cls, value: Any, options: Options) -> int | None:
        if value is None:
            return None

        if isinstance(value, numpy.generic):
            value = value.item()

        if isinstance(value, bool):
            cls.coercion_error(value, options)

        if options.strict and not isinstance(value, int):
            cls.coercion_error(value, options)

        if isinstance(value, int):
            return value

        if isinstance(value, str):
            text = value.strip()

            try:
                return int(text)
            except ValueError:
                pass

            try:
                value = float(text)
            except ValueError:
                cls.coercion_error(value, options)

        if not isinstance(value, numbers.Real):
            cls.coercion_error(value, options)

        if not math.isfinite(value):
            cls.coercion_error(value, options)

        return int(value)


class Boolean(Primitive):

    type_name = 'boolean'

    def coerce(cls, value: Any, options: Options) -> bool | None:
        if value is None or isinstance(value, bool):
            return value

        if options.strict:
            cls.coercion_error(value, options)

        if isinstance(value, str):
            return value == 'true'

        return bool(value)


class Date(Primitive):
    """
    Timestamps.

    Accepted input:

    - ``datetime`` and ``date`` objects, unchanged (``pandas.Timestamp`` is
      converted to a plain ``datetime``),
    - ``numpy.datetime64``, read as UTC,
    - ``int`` and ``float``, read as milliseconds since the epoch,
    - ISO-8601 strings ``YYYY-MM-DDTHH:MM:SS[.fff][Z]``. Strings without the
      ``Z`` suffix are read in the zone selected by
      ``Options.naive_timezone``. Strings that do not match the pattern
      yield ``None`` rather than an error.

    Dates clean to ``YYYY-MM-DDTHH:MM:SS.fffZ``.
    """

    type_name = 'date'

    def coerce(cls, value: Any, options: Options) -> date | None:
        if value is None:
            return None

        if options.strict:
            if not isinstance(value, date):
                cls.coercion_error(value, options)
            return value

        if isinstance(value, pandas.Timestamp):
            return value.to_pydatetime()

        if isinstance(value, date):
            return value

        if isinstance(value, numpy.datetime64):
            if pandas.isna(value):
                return None
            return pandas.Timestamp(value).to_pydatetime().replace(tzinfo=timezone.utc)

        if isinstance(value, str):
            return cls.parse(value, options)

        if isinstance(value, numpy.generic):
            value = value.item()

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            try:
                return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError) as error:
                cls.coercion_error(value, options, str(error))

        cls.coercion_error(value, options)

    def clean_value(cls, value: date, options: Options) -> str:
        return to_iso_string(value)

    @classmethod
    def parse(cls, text: str, options: Options) -> datetime | None:
        """Parse an ISO-8601 string, or return None if it does not match."""
        match = ISO_DATE_FORMAT.match(text)

        if match is None:
            return None

        year, month, day, hour, minute, second, fraction, utc = match.groups()
        microsecond = int((fraction or '0').ljust(6, '0')[:6])

        try:
            value = datetime(int(year), int(month), int(day), int(hour), int(minute), int(second), microsecond)
        except ValueError as error:
            cls.coercion_error(text, options, str(error))

        if utc or options.naive_timezone == 'utc':
            return value.replace(tzinfo=timezone.utc)

        return value.astimezone()


class Function(Primitive):

    type_name = 'function'

    def coerce(cls, value: Any, options: Options) -> Any:
        if value is not None and not callable(value):
            cls.coercion_error(value, options, 'Value is not a function')

        return value


class Object(Primitive):
    """Opaque values: anything but strings, bytes and numbers."""

    type_name = 'object'

    def coerce(cls, value: Any, options: Options) -> Any:
        if isinstance(value, (str, bytes, numbers.Number)):
            cls.coercion_error(value, options)

        return value


class AnyValue(Primitive):

    type_name = 'any'

    def coerce(cls, value: Any, options: Options) -> Any:
        return value


PRIMITIVES: dict[str, type[Model]] = {
    adapter.type_name: adapter
    for adapter in (String, Number, Integer, Boolean, Date, Function, Object, AnyValue, Array)
}

BUILTIN_TYPES: dict[Any, type[Model]] = {
    str: String,
    float: Number,
    int: Integer,
    bool: Boolean,
    datetime: Date,
    date: Date,
    dict: Object,
    object: Object,
    list: Array,
    collections.abc.Callable: Function,
    Any: AnyValue,
}
