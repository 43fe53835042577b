#  -*- coding: utf-8 -*-
"""
Enumeration builder.

``Enum.create`` builds a closed type with one singleton per declared value::

    >>> Color = Enum.create(['red', 'green', 'blue'], type_name='Color')
    >>> Color.coerce('red') is Color.RED is Color.red is Color['red']
    True
    >>> Color.GREEN.ordinal, Color.GREEN.name, Color.GREEN.is_green()
    (1, 'green', True)

A mapping associates a payload with each value, which may itself be a
type::

    >>> Shape = Enum.create({'values': {'circle': Circle, 'square': Square}})
    >>> Shape.CIRCLE.value is Circle
    True

Each singleton is reachable through its declared key, its constant-cased
name and, for list enums, its literal value. ``auto_upper_case`` and
``auto_lower_case`` normalise incoming strings before the lookup. Once all
singletons are built the type refuses further construction.

The raw form of a singleton is its value name: records store names, reading
them back yields the singletons, and ``clean`` renders the name.
"""

from __future__ import annotations

import logging

from collections.abc import Mapping

from moldura.errors import InvalidEnumValueError, ModelDefinitionError
from moldura.model import Model
from moldura.utils import camel_to_snake, to_constant_name, to_snake_case

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Callable, Self, Type

from moldura.options import Options


logger = logging.getLogger(__name__)


def _default_name(names: list[str]) -> str:
    """``['red', 'dark_blue']`` -> ``'RedDarkBlueEnum'``; long enums keep their first three names."""
    words = [word for name in names[:3] for word in to_snake_case(name).split('_') if word]
    return ''.join(word.capitalize() for word in words) + 'Enum'


class Enum(Model):
    """Base of every enumeration type."""

    # ========== ========== ========== ========== ========== class attributes
    members: tuple[Enum, ...] = ()
    names: tuple[str, ...] = ()

    _lookup: dict[Any, Enum] = {}
    _normalize: Callable[[str], str] | None = None

    # ========== ========== ========== ========== ========== special methods
    def __init__(self, data: Any = None, options: Any = None) -> None:
        super().__init__(data, options)
        self._value: Any = data
        self._name: str | None = None
        self._ordinal: int | None = None

    def __str__(self) -> str:
        return str(self._name)

    def __repr__(self) -> str:
        return f'{type(self).__name__}.{self._name}'

    def __copy__(self) -> Self:
        return self

    def __deepcopy__(self, memo: dict) -> Self:
        return self

    # ========== ========== ========== ========== ========== protected methods
    @classmethod
    def _subscript(cls, key: Any) -> Enum:
        member = cls.lookup(key)

        if member is None:
            raise KeyError(key)

        return member

    @classmethod
    def _contains(cls, key: Any) -> bool:
        return isinstance(key, cls) or cls.lookup(key) is not None

    @classmethod
    def _install(cls, name: str, member: Enum) -> None:
        for attr_name in dict.fromkeys((name, to_constant_name(name))):
            if hasattr(cls, attr_name):
                logger.debug('enum %s: %r is not installed as a class attribute', cls.__name__, attr_name)
                continue
            setattr(cls, attr_name, member)

        method_name = f'is_{to_snake_case(name)}'

        if hasattr(cls, method_name):
            logger.debug('enum %s: %r is not installed as a method', cls.__name__, method_name)
            return

        def test(self: Enum) -> bool:
            return self is member

        test.__name__ = method_name
        setattr(cls, method_name, test)

    # ========== ========== ========== ========== ========== public methods
    def clean_value(cls, value: Enum, options: Options) -> str:
        return value.name

    @classmethod
    def create(cls, values: Any = None, options: Any = None, **config: Any) -> Any:
        """
        Build an enumeration type.

        On an enumeration type (rather than on ``Enum`` itself) this behaves
        like ``wrap``: ``Color.create('red') is Color.RED``.

        Parameters
        ----------
        values : list or mapping
            A list of values, or a configuration mapping holding ``values``
            (a list, or a mapping from value name to payload) and any of the
            options below.
        auto_upper_case, auto_lower_case : bool, optional
            Normalise incoming strings before the lookup.
        coerce : callable, optional
            ``coerce(cls, value, options)``, run before the lookup. A result
            other than None replaces the value.
        type_name : str, optional
        **config
            Any other ``Model.extend`` option.

        Returns
        -------
        type
        """
        if cls is not Enum:
            return cls.wrap(values, options)

        if isinstance(values, Mapping):
            config = {**values, **config}
        elif values is not None:
            config = {**config, 'values': values}

        config = {camel_to_snake(key): value for key, value in config.items()}

        if 'values' not in config:
            raise ModelDefinitionError('Enum.create requires values')

        declared = config.pop('values')
        auto_upper_case = config.pop('auto_upper_case', False)
        auto_lower_case = config.pop('auto_lower_case', False)
        custom_coerce = config.pop('coerce', None)

        def coerce(enum_type: Type[Enum], value: Any, options: Options) -> Enum | None:
            if custom_coerce is not None:
                replaced = custom_coerce(enum_type, value, options)
                if replaced is not None:
                    value = replaced

            if value is None or isinstance(value, enum_type):
                return value

            member = enum_type.lookup(value)

            if member is None:
                enum_type.coercion_error(value, options, error_type=InvalidEnumValueError)

            return member

        if isinstance(declared, Mapping):
            entries = [(str(name), payload) for name, payload in declared.items()]
            simple = False
        else:
            entries = [(value if isinstance(value, str) else str(value), value) for value in declared]
            simple = True

        enum_type = cls.extend(coerce=coerce, **config)

        if config.get('type_name') is None:
            # anonymous enums are named after their values and stay out of the registry
            enum_type.__name__ = enum_type.__qualname__ = _default_name([name for name, _ in entries])

        if auto_upper_case:
            enum_type._normalize = str.upper
        elif auto_lower_case:
            enum_type._normalize = str.lower

        enum_type._lookup = {}
        members = []

        for ordinal, (name, payload) in enumerate(entries):
            member = enum_type(payload)
            member._name = name
            member._ordinal = ordinal
            members.append(member)

            keys = [name, to_constant_name(name)]

            if simple and not auto_upper_case and not auto_lower_case:
                keys.append(payload)

            if enum_type._normalize is not None:
                keys.append(enum_type._normalize(name))

            for key in keys:
                enum_type._lookup.setdefault(key, member)

            enum_type._install(name, member)

        enum_type.members = tuple(members)
        enum_type.names = tuple(member.name for member in members)

        enum_type.prevent_construction()

        logger.debug('built enum %s with values %s', enum_type.__name__, enum_type.names)

        return enum_type

    @classmethod
    def lookup(cls, key: Any) -> Enum | None:
        """Return the singleton matching ``key``, or None."""
        if isinstance(key, str) and cls._normalize is not None:
            key = cls._normalize(key)

        try:
            return cls._lookup.get(key)
        except TypeError:
            # unhashable
            return None

    def unwrap(self) -> str | None:
        """Return the value name, the form stored in records."""
        return self._name

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def name(self) -> str | None:
        """str: the declared value name."""
        return self._name

    @property
    def value(self) -> Any:
        """The payload: the value itself for list enums."""
        return self._value

    @property
    def ordinal(self) -> int | None:
        """int: zero-based declaration position."""
        return self._ordinal
