#  -*- coding: utf-8 -*-
"""
Type descriptor core.

A model type is a Python class whose metaclass is ``ModelMetatype``. The
metatype compiles the declarative configuration of the class (its
properties, mixins and hooks) into a flattened attribute table and installs
one ``Attribute`` descriptor per property, plus the per-item accessors of
array properties.

Instances are thin typed handles over a raw record (usually a ``dict``)::

    >>> class Person(Model):
    ...     properties = {'name': String, 'age': Integer}
    >>> raw = {'name': 'John', 'age': '30'}
    >>> person = Person.wrap(raw)
    >>> person.age
    30
    >>> person.unwrap() is raw
    True
    >>> Person.wrap(raw) is person
    True

The same type can be declared with ``Model.extend``::

    >>> Person = Model.extend(type_name='Person',
    ...                       properties={'name': String, 'age': Integer})

Failure modes
-------------
Internally every coercion raises ``CoercionError``. Operations that accept
an ``options`` argument catch the error at the property boundary: without an
error accumulator the error propagates, with one the message is recorded
and the offending value is left absent.
"""

from __future__ import annotations

import json
import logging
import sys
import weakref

from abc import ABC, ABCMeta, abstractmethod
from collections import Counter
from collections.abc import Mapping, MutableMapping
from datetime import date, datetime
from types import SimpleNamespace

import numpy

from moldura.attribute import Attribute, to_attribute
from moldura.errors import (ArrayWrapError, CoercionError, InstantiationError, ModelDefinitionError,
                            UnrecognizedAttributeError)
from moldura.options import Options
from moldura.utils import camel_to_snake, singularize, to_iso_string

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Callable, Iterator, NamedTuple, NoReturn, Type


logger = logging.getLogger(__name__)

RESERVED_NAMES = frozenset((
    'clean', 'clean_value', 'after_clean', 'coerce', 'coercion_error', 'convert_array', 'create',
    'extend', 'get', 'set', 'unwrap', 'wrap', 'validate', 'stringify', 'init', 'properties', 'keys',
    'mixins', 'type_name', 'super_type', 'wrapped', 'auto_unwrap', 'constructable',
    'additional_properties', 'is_instance', 'is_compatible_with', 'is_wrapped', 'is_primitive',
    'has_properties', 'has_property', 'get_property', 'get_properties', 'for_each_property',
    'prevent_construction',
))


class View(ABC):
    """Base of typed handles over raw data that are not model instances."""

    __slots__ = ()

    @abstractmethod
    def unwrap(self) -> Any:
        """Return the raw data behind the handle."""


def _record_refcount(wrapper: Any) -> int:
    return sys.getrefcount(wrapper._data)


class WrapperTable:
    """
    Side map from raw records to their wrappers.

    Entries are keyed by ``(id(record), type)`` and are only valid while
    ``wrapper._data is record``. A wrapper is held strongly for as long as its
    record is reachable from anywhere else, so wrapping a record again returns
    the same instance even after every caller dropped it.

    Plain records cannot be weakly referenced, so reachability is checked by
    reference count during a sweep: an entry whose record is referenced by its
    wrappers alone is demoted to a weak map, where it lives exactly as long as
    the wrapper does.
    """

    # ========== ========== ========== ========== ========== special methods
    def __init__(self, sweep_at: int = 1024) -> None:
        self._strong: dict[tuple[int, type], Any] = {}
        self._weak: weakref.WeakValueDictionary[tuple[int, type], Any] = weakref.WeakValueDictionary()
        self._min_sweep_at: int = sweep_at
        self._sweep_at: int = sweep_at

    def __len__(self) -> int:
        return len(self._strong) + len(self._weak)

    # ========== ========== ========== ========== ========== public methods
    def get(self, record: Any, cls: type) -> Any:
        key = (id(record), cls)
        wrapper = self._strong.get(key)

        if wrapper is None:
            wrapper = self._weak.get(key)

        if wrapper is not None and wrapper._data is record:
            return wrapper

        return None

    def add(self, wrapper: Any) -> None:
        key = (id(wrapper._data), type(wrapper))
        self._weak.pop(key, None)
        self._strong[key] = wrapper

        if len(self._strong) >= self._sweep_at:
            self.sweep()

    def sweep(self) -> None:
        """Demote the entries whose record is only reachable through its wrapper."""
        baseline = _record_refcount(SimpleNamespace(_data={}))
        # a record wrapped by several types is referenced by each of its wrappers
        shared = Counter(record_id for record_id, _ in self._strong)
        demoted = 0

        for key, wrapper in list(self._strong.items()):
            if _record_refcount(wrapper) <= baseline + shared[key[0]] - 1:
                del self._strong[key]
                self._weak[key] = wrapper
                demoted += 1

        self._sweep_at = max(self._min_sweep_at, 2 * len(self._strong))
        logger.debug('wrapper sweep: %d demoted, %d held', demoted, len(self._strong))


_wrappers = WrapperTable()


class PropertyChange(NamedTuple):
    """Event passed to ``on_set`` hooks after a property value changed."""
    model: Model
    property_name: str
    attribute: Attribute
    old_value: Any
    new_value: Any


class Mixin:
    """
    Base class of reusable type fragments.

    A mixin is applied to a model type either by listing it among the bases
    of a class statement or through the ``mixins`` option of
    ``Model.extend``. It may contribute:

    - properties, through a ``properties`` mapping or ``Attribute``
      descriptors (declarations of the type itself take precedence),
    - instance methods,
    - ``init(self, data, options)``, run for every new instance after the
      ``init`` hooks of the base type and before the type's own ``init``,
    - ``on_set(self, event)``, run after a property value changed,
    - a classmethod ``init_type(mixin, model_type)``, run once when a type
      applying the mixin is compiled.

    A mixin is applied at most once along a type's inheritance chain. Mixins
    that declare the same ``mixin_id`` are considered the same mixin. Nested
    mixins are declared by inheriting from another mixin or through a
    ``mixins`` sequence.
    """

    mixin_id: str | None = None
    mixins: tuple[type[Mixin], ...] = ()


def _is_mixin(klass: Any) -> bool:
    # model types that apply a mixin are Mixin subclasses too
    return isinstance(klass, type) and issubclass(klass, Mixin) and not isinstance(klass, ModelMetatype)


# ========== ========== ========== ========== ========== ==========
class ModelMetatype(ABCMeta):
    """Metaclass compiling model type declarations."""

    # ========== ========== ========== ========== ========== class attributes
    _registry: dict[str, Type[Model]] = {}

    # ========== ========== ========== ========== ========== special methods
    def __new__(mcs,
                name: str,
                bases: tuple[type, ...],
                namespace: dict[str, Any],
                **kwargs: Any) -> Type[Model]:

        namespace = dict(namespace)
        base = next((b for b in bases if isinstance(b, ModelMetatype)), None)

        # ---------- ---------- ---------- ---------- ---------- ----------
        if base is None:
            # root type
            cls = super().__new__(mcs, name, bases, namespace, **kwargs)
            cls.properties = {}
            cls.keys = {}
            cls.mixins = ()
            cls._init_hooks = ()
            cls._on_set_hooks = ()
            return cls

        # ---------- ---------- ---------- ---------- ---------- ----------
        declared = mcs._collect_properties(namespace)

        for hook_name, target in (('coerce', '_coerce'), ('factory', '_factory'), ('clean_value', 'clean_value')):

            if hook_name in namespace:
                function = namespace.pop(hook_name)

                if function is not None and not isinstance(function, (classmethod, staticmethod)):
                    function = classmethod(function)

                namespace[target] = function

        own_init = namespace.pop('init', None)
        namespace.setdefault('type_name', name)

        listed = tuple(namespace.pop('mixins', ()))

        for candidate in listed:
            if not _is_mixin(candidate):
                raise ModelDefinitionError(f'Invalid mixin {candidate!r}: expected a Mixin subclass')

        new_mixins = mcs._new_mixins(base, (*bases, *listed))
        in_mro = {klass for b in bases for klass in b.__mro__}
        extra = [m for m in new_mixins if m not in in_mro and m not in bases]

        # a mixin already inherited by another added mixin would break the MRO
        bases = (*bases, *(m for m in extra if not any(o is not m and issubclass(o, m) for o in extra)))

        for mixin in new_mixins:
            for attr_name, config in mcs._collect_properties(dict(mixin.__dict__)).items():
                declared.setdefault(attr_name, config)

        reserved = RESERVED_NAMES.intersection(declared)
        if reserved:
            raise ModelDefinitionError(f'Invalid property name(s) for type {name}: {sorted(reserved)}. '
                                       f'These names are reserved by the model API')

        for attr_name in declared:
            namespace.pop(attr_name, None)

        cls = super().__new__(mcs, name, bases, namespace, **kwargs)

        # ---------- ---------- ---------- ---------- ---------- ----------
        cls.super_type = base
        cls.mixins = (*base.mixins, *new_mixins)

        cls._init_hooks = (*base._init_hooks,
                           *(m.__dict__['init'] for m in new_mixins if 'init' in m.__dict__),
                           *((own_init,) if own_init is not None else ()))

        cls._on_set_hooks = (*base._on_set_hooks,
                             *(m.__dict__['on_set'] for m in new_mixins if 'on_set' in m.__dict__))

        properties = dict(base.properties)

        if declared:
            from moldura.array import Array

        for attr_name, config in declared.items():
            attribute = to_attribute(attr_name, config, cls)
            properties[attr_name] = attribute
            type.__setattr__(cls, attr_name, attribute)

            if issubclass(attribute.type, Array):
                mcs._install_array_methods(cls, attribute, namespace)

        cls.properties = properties
        cls.keys = {attribute.key: attribute for attribute in properties.values()}

        if cls.__dict__.get('type_name') is not None:
            registry = ModelMetatype._registry
            if cls.type_name in registry:
                logger.debug('type name %r re-registered', cls.type_name)
            registry[cls.type_name] = cls

        for mixin in new_mixins:
            if 'init_type' in mixin.__dict__:
                mixin.init_type(cls)

        logger.debug('compiled type %s: %d properties, mixins %s',
                     name, len(properties), [m.__name__ for m in new_mixins])

        return cls

    def __getitem__(cls, key: Any) -> Any:
        return cls._subscript(key)

    def __contains__(cls, key: Any) -> bool:
        return cls._contains(key)

    # ========== ========== ========== ========== ========== private methods
    @staticmethod
    def _collect_properties(namespace: dict[str, Any]) -> dict[str, Any]:
        declared = {}

        for attr_name, value in namespace.items():
            if isinstance(value, Attribute):
                declared[attr_name] = value

        properties = namespace.pop('properties', None)

        if properties is not None:
            if not isinstance(properties, Mapping):
                raise ModelDefinitionError(f'properties must be a mapping, got {type(properties).__name__}')
            declared.update(properties)

        return declared

    @staticmethod
    def _new_mixins(base: type, candidates: tuple[type, ...]) -> list[type[Mixin]]:
        applied = set(base.mixins)
        applied_ids = {m.mixin_id for m in base.mixins if m.mixin_id is not None}

        ordered: list[type[Mixin]] = []

        def expand(mixin: type[Mixin]) -> None:
            for nested in mixin.__dict__.get('mixins', ()):
                expand(nested)

            for klass in reversed(mixin.__mro__):
                if not _is_mixin(klass) or klass is Mixin:
                    continue

                if klass in applied or klass in ordered:
                    continue

                if klass.mixin_id is not None and klass.mixin_id in applied_ids:
                    continue

                if klass is not mixin:
                    for nested in klass.__dict__.get('mixins', ()):
                        expand(nested)

                if klass.mixin_id is not None:
                    applied_ids.add(klass.mixin_id)

                ordered.append(klass)

        for candidate in candidates:
            if _is_mixin(candidate):
                expand(candidate)

        return ordered

    @staticmethod
    def _install_array_methods(cls: type, attribute: Attribute, namespace: dict[str, Any]) -> None:
        singular = attribute.singular or singularize(attribute.name)

        def add(self: Model, value: Any, options: Any = None) -> Any:
            return self._ensure_array(attribute, options).add(value, options)

        def get(self: Model, index: int) -> Any:
            values = self._get_attribute_value(attribute)
            return None if values is None else values[index]

        def iterate(self: Model) -> Iterator[Any]:
            values = self._get_attribute_value(attribute)
            if values is not None:
                yield from values

        for method_name, method in ((f'add_{singular}', add),
                                    (f'get_{singular}', get),
                                    (f'iter_{attribute.name}', iterate)):
            if method_name in namespace:
                continue
            method.__name__ = method_name
            method.__qualname__ = f'{cls.__qualname__}.{method_name}'
            type.__setattr__(cls, method_name, method)

    # ========== ========== ========== ========== ========== public methods
    def extend(cls, **config: Any) -> Type[Model]:
        """
        Derive a new type from this one.

        Parameters
        ----------
        properties : mapping, optional
            Property name to property configuration.
        additional_properties : bool, optional
            Tolerate and preserve keys that match no declared property.
        wrap : bool or callable, optional
            ``False`` makes the type a pure coercion type that never produces
            a wrapper. A callable ``factory(cls, data, options)`` replaces the
            wrap step entirely.
        coerce : callable, optional
            ``coerce(cls, value, options)``; runs before wrapping and raises
            through ``cls.coercion_error`` on invalid input.
        clean : callable, optional
            ``clean(cls, value, options)``; replaces the default clean walk.
        after_clean : callable, optional
            ``after_clean(self, data, options)``; runs after cleaning and may
            return a replacement result.
        init : callable, optional
            ``init(self, data, options)``; runs once per new instance.
        mixins : sequence of Mixin subclasses, optional
        prototype : mapping, optional
            Extra instance members.
        type_name, title, description : str, optional
            Metadata. ``type_name`` also registers the type for lookup by
            name (``Model['Person']``).
        auto_unwrap, constructable : bool, optional

        Any other keyword is copied onto the new type as a class attribute.
        camelCase spellings (``additionalProperties``) are accepted.

        Returns
        -------
        type
        """
        config = {camel_to_snake(key): value for key, value in config.items()}

        type_name = config.pop('type_name', None)
        mixins = tuple(config.pop('mixins', None) or ())

        namespace: dict[str, Any] = {'__module__': cls.__module__,
                                     '__qualname__': type_name or cls.__qualname__,
                                     'type_name': type_name,
                                     'mixins': mixins}

        namespace.update(config.pop('prototype', None) or {})

        wrap = config.pop('wrap', None)
        if callable(wrap):
            namespace['factory'] = wrap
        elif wrap is not None:
            namespace['wrapped'] = bool(wrap)

        renames = {'clean': 'clean_value', 'title': 'type_title', 'description': 'type_description'}

        for key, value in config.items():
            namespace[renames.get(key, key)] = value

        return ModelMetatype(type_name or cls.__name__, (cls,), namespace)


# ========== ========== ========== ========== ========== ==========
class Model(metaclass=ModelMetatype):
    """
    Root of every model type.

    Parameters
    ----------
    data : mapping, optional
        Backing record. It is processed in place: declared values are
        coerced and stored under their storage keys, and the record becomes
        the instance's ``data``.
    options : Options, list or mapping, optional
        See ``moldura.options.Options``.

    Raises
    ------
    InstantiationError
        If the type is not constructable.
    ArrayWrapError
        If ``data`` is a sequence and the type declares properties.
    CoercionError
        In throwing mode, on the first value that fails coercion.
    """

    # ========== ========== ========== ========== ========== class attributes
    type_name: str | None = 'Model'
    type_title: str | None = None
    type_description: str | None = None

    wrapped: bool = True
    auto_unwrap: bool = False
    constructable: bool = True
    additional_properties: bool = False
    primitive: bool = False

    super_type: Type[Model] | None = None

    _factory: Callable | None = None
    _coerce: Callable | None = None
    clean_value: Callable | None = None
    after_clean: Callable | None = None

    # ========== ========== ========== ========== ========== special methods
    def __init__(self, data: Any = None, options: Any = None) -> None:
        cls = type(self)

        if not cls.constructable:
            raise InstantiationError(f'Instances of {cls.__name__} cannot be created. data: {data!r}')

        options = Options.of(options)

        if data is None:
            data = {}

        self._children: dict[str, Any] = {}

        if cls.has_properties():

            if isinstance(data, (list, tuple)):
                raise ArrayWrapError(f'Cannot wrap a sequence as {cls.__name__}. '
                                     f'Use {cls.__name__}.wrap or an array property instead')

            if not isinstance(data, MutableMapping):
                cls.coercion_error(data, options, f'Expected a mapping for {cls.__name__}')

        self._data: Any = data

        if cls.has_properties():
            self._assign(data, options)

        _wrappers.add(self)

        for hook in cls._init_hooks:
            hook(self, data, options)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._data!r})'

    # ========== ========== ========== ========== ========== private methods
    def _assign(self, data: MutableMapping, options: Options) -> None:
        cls = type(self)

        for key in list(data):

            if isinstance(key, str) and key.startswith('$'):
                continue

            attribute = cls.keys.get(key) or cls.properties.get(key)

            if attribute is None:
                if options.accumulating and not cls.additional_properties:
                    options.report(UnrecognizedAttributeError(key))
                continue

            value = data[key]

            if attribute.key != key:
                del data[key]

            self._set_attribute_value(attribute, value, options)

    def _coerce_attribute_value(self, attribute: Attribute, value: Any, options: Options) -> tuple[Any, Any]:
        attr_type = attribute.type

        if isinstance(value, Model) and isinstance(value, attr_type):
            return value.unwrap(), value

        with options.for_attribute(attribute):

            if attr_type.wrapped:
                wrapper = attr_type._wrap(value, options)
                return unwrap(wrapper), wrapper

            if attr_type._coerce is not None:
                return attr_type._coerce(value, options), None

        return value, None

    def _set_attribute_value(self, attribute: Attribute, value: Any, options: Any) -> None:
        options = Options.of(options)
        key = attribute.key
        old_value = self._data.get(key)

        try:
            raw, wrapper = self._coerce_attribute_value(attribute, value, options)

        except (CoercionError, ArrayWrapError) as error:
            if attribute.fset is None:
                self._data.pop(key, None)
            self._children.pop(key, None)

            options.report(error)
            return

        if attribute.fset is not None:
            attribute.fset(self, raw, attribute)
            raw = self._data.get(key)
        else:
            self._data[key] = raw

        if wrapper is not None and wrapper is not raw:
            self._children[key] = wrapper
        else:
            self._children.pop(key, None)

        if old_value is not raw:
            event = PropertyChange(self, attribute.name, attribute, old_value, raw)
            for hook in type(self)._on_set_hooks:
                hook(self, event)

    def _child(self, attribute: Attribute, raw: Any) -> Any:
        key = attribute.key
        child = self._children.get(key)

        if child is not None and unwrap(child) is raw:
            return child

        options = Options()
        with options.for_attribute(attribute):
            child = attribute.type._wrap(raw, options)

        if child is None:
            return None

        if unwrap(child) is not raw and attribute.fget is None:
            self._data[key] = unwrap(child)

        self._children[key] = child
        return child

    def _get_attribute_value(self, attribute: Attribute) -> Any:
        if attribute.fget is not None:
            return attribute.fget(self, attribute)

        value = self._data.get(attribute.key)

        if value is None:
            return None

        attr_type = attribute.type

        if not attr_type.wrapped or attr_type.auto_unwrap:
            return value

        return self._child(attribute, value)

    def _delete_attribute_value(self, attribute: Attribute) -> None:
        self._data.pop(attribute.key, None)
        self._children.pop(attribute.key, None)

    def _ensure_array(self, attribute: Attribute, options: Any = None) -> Any:
        values = self._get_attribute_value(attribute)

        if values is None:
            self._set_attribute_value(attribute, [], options)
            values = self._get_attribute_value(attribute)

        return values

    def _clean_attribute_value(self, attribute: Attribute, options: Options) -> Any:
        attr_type = attribute.type

        if attribute.fget is not None:
            value = attribute.fget(self, attribute)
        else:
            value = self._data.get(attribute.key)

        if value is None:
            return None

        with options.for_attribute(attribute):

            if attr_type.wrapped and attribute.fget is None and not isinstance(value, Model):
                value = self._child(attribute, value)

            if isinstance(value, Model):
                return value.clean(options)

            if attr_type.clean_value is not None:
                return attr_type.clean_value(value, options)

            return clean(value, options)

    # ========== ========== ========== ========== ========== protected methods
    @classmethod
    def _wrap(cls, data: Any, options: Options) -> Any:
        if cls._factory is not None:
            return cls._factory(data, options)

        if isinstance(data, cls):
            return data

        if cls._coerce is not None:
            data = cls._coerce(data, options)

            if data is None or isinstance(data, cls):
                return data

        elif data is None:
            return None

        data = unwrap(data)

        if not cls.wrapped:
            return data

        wrapper = _wrappers.get(data, cls)

        if wrapper is not None:
            return wrapper

        return cls(data, options)

    @classmethod
    def _subscript(cls, key: str) -> Type[Model]:
        if cls is Model:
            return ModelMetatype._registry[key]

        raise KeyError(f'Class {cls.__name__} is not subscriptable')

    @classmethod
    def _contains(cls, key: str | type) -> bool:
        if cls is Model:
            if isinstance(key, str):
                return key in ModelMetatype._registry

            if isinstance(key, type):
                return key in ModelMetatype._registry.values()

            raise TypeError('Expected a type name or a type')

        raise TypeError(f'{cls.__name__} does not support membership tests')

    # ========== ========== ========== ========== ========== public methods
    @classmethod
    def wrap(cls, data: Any, options: Any = None) -> Any:
        """
        Wrap raw ``data`` into an instance of this type.

        Wrapping is idempotent: an instance of the type is returned as-is
        and wrapping a record that already has a live wrapper of this type
        returns that wrapper. ``None`` is returned unchanged. For types with
        ``wrapped = False`` the coerced raw value is returned. A sequence
        given to a wrapped type is wrapped element-wise into a new sequence.

        Returns None on failure in accumulating mode.
        """
        options = Options.of(options)

        try:
            if cls.wrapped and isinstance(data, (list, tuple, View)) and cls._factory is None \
                    and not cls.is_instance(data):
                return cls.convert_array(data, options)

            return cls._wrap(data, options)

        except (CoercionError, ArrayWrapError) as error:
            options.report(error)
            return None

    @classmethod
    def create(cls, data: Any = None, options: Any = None) -> Any:
        """Like ``wrap``, but ``None`` yields a new empty instance."""
        if data is None and cls.wrapped and cls._factory is None:
            return cls({}, options)

        return cls.wrap(data, options)

    @classmethod
    def coerce(cls, value: Any, options: Any = None) -> Any:
        """
        Coerce ``value`` to this type.

        Returns None on failure in accumulating mode.

        Raises
        ------
        CoercionError
            On failure in throwing mode.
        """
        options = Options.of(options)

        try:
            return cls._wrap(value, options)

        except (CoercionError, ArrayWrapError) as error:
            options.report(error)
            return None

    @classmethod
    def convert_array(cls, values: Any, options: Any = None) -> Any:
        """Wrap every element of ``values`` as this type into a new array view."""
        from moldura.array import Array

        options = Options.of(options)
        return Array.convert(values, cls, options)

    @classmethod
    def validate(cls, data: Any, strict: bool = False) -> tuple[Any, list[str]]:
        """
        Wrap ``data`` collecting every failure.

        Returns
        -------
        tuple
            ``(instance, errors)``; ``errors`` is empty when ``data`` is
            valid.
        """
        errors: list[str] = []
        instance = cls.wrap(data, Options(errors=errors, strict=strict))
        return instance, errors

    @classmethod
    def coercion_error(cls,
                       value: Any,
                       options: Any,
                       message: str | None = None,
                       error_type: type[CoercionError] = CoercionError) -> NoReturn:
        """
        Raise a ``CoercionError`` for ``value``.

        The attribute in context (if any) prefixes the message. Coercion
        hooks call this to reject their input; the caller decides whether
        the error propagates or is accumulated.
        """
        attribute = Options.of(options).attribute_name if options is not None else None

        error = error_type(value, attribute, message)
        error.source = Model
        raise error

    @classmethod
    def is_instance(cls, value: Any) -> bool:
        return isinstance(value, cls)

    @classmethod
    def is_compatible_with(cls, other: type) -> bool:
        """True if ``other`` is this type or one of its ancestors."""
        current = cls
        while current is not None:
            if current is other:
                return True
            current = current.super_type
        return False

    @classmethod
    def is_wrapped(cls) -> bool:
        return cls.wrapped

    @classmethod
    def is_primitive(cls) -> bool:
        return cls.primitive

    @classmethod
    def has_properties(cls) -> bool:
        """True if the type declares properties or tolerates additional ones."""
        return bool(cls.properties) or cls.additional_properties

    @classmethod
    def has_property(cls, name: str) -> bool:
        return name in cls.properties

    @classmethod
    def get_property(cls, name: str) -> Attribute | None:
        return cls.properties.get(name)

    @classmethod
    def get_properties(cls) -> dict[str, Attribute]:
        return dict(cls.properties)

    @classmethod
    def for_each_property(cls, callback: Callable[[Attribute], Any], inherited: bool = True) -> None:
        """Call ``callback(attribute)`` for each property, in declaration order."""
        for attribute in cls.properties.values():
            if inherited or attribute.owner is cls:
                callback(attribute)

    @classmethod
    def prevent_construction(cls) -> None:
        cls.constructable = False

    # ---------- ---------- ---------- ---------- ---------- instance methods
    def get(self, name: str) -> Any:
        """
        Read a property by name.

        Raises
        ------
        UnrecognizedAttributeError
            If ``name`` is not declared and the type does not tolerate
            additional properties.
        """
        attribute = type(self).properties.get(name)

        if attribute is not None:
            return self._get_attribute_value(attribute)

        if type(self).additional_properties:
            return self._data.get(name)

        raise UnrecognizedAttributeError(name)

    def set(self, name: str, value: Any, options: Any = None) -> None:
        """Write a property by name, through the set protocol."""
        options = Options.of(options)
        attribute = type(self).properties.get(name)

        if attribute is not None:
            self._set_attribute_value(attribute, value, options)

        elif type(self).additional_properties:
            self._data[name] = value

        else:
            options.report(UnrecognizedAttributeError(name))

    def unwrap(self) -> Any:
        """Return the backing record."""
        return self._data

    def clean(self, options: Any = None) -> Any:
        """
        Project this instance into plain, serialisation-ready data.

        Transient attributes are omitted. Keys of the record that match no
        declared property are kept for types with ``additional_properties``,
        reported in accumulating mode, and dropped otherwise.
        """
        options = Options.of(options)
        cls = type(self)

        if cls.clean_value is not None:
            result = cls.clean_value(self, options)

        elif cls.has_properties():
            result = {}

            for attribute in cls.properties.values():

                if not attribute.persisted:
                    continue

                if attribute.fget is None and attribute.key not in self._data:
                    continue

                result[attribute.key] = self._clean_attribute_value(attribute, options)

            for key, value in self._data.items():

                if key in cls.keys or (isinstance(key, str) and key.startswith('$')):
                    continue

                if cls.additional_properties:
                    result[key] = clean(value, options)

                elif options.accumulating:
                    options.report(UnrecognizedAttributeError(key))

        else:
            result = self._data

        if cls.after_clean is not None:
            replaced = self.after_clean(result, options)
            if replaced is not None:
                result = replaced

        return result

    def stringify(self, pretty: bool = False) -> str:
        return stringify(self, pretty)

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def data(self) -> Any:
        """The backing record (shadowed by a property named ``data``)."""
        return self._data


# ========== ========== ========== ========== ========== ==========
def is_model(obj: Any) -> bool:
    return isinstance(obj, Model)


def unwrap(obj: Any) -> Any:
    """Return the backing record of a model instance or view, or ``obj`` itself."""
    if isinstance(obj, (Model, View)):
        return obj.unwrap()

    return obj


def clean(obj: Any, options: Any = None) -> Any:
    """
    Project any value into plain, serialisation-ready data.

    Model instances found at any depth inside lists, tuples and mappings are
    cleaned through their type. Dates become ISO-8601 strings and numpy
    arrays and scalars become Python lists and scalars. Anything else is
    returned unchanged.
    """
    options = Options.of(options)

    if obj is None:
        return None

    if isinstance(obj, Model):
        return obj.clean(options)

    if isinstance(obj, (list, tuple, View)):
        return [clean(item, options) for item in obj]

    if isinstance(obj, Mapping):
        return {key: clean(value, options) for key, value in obj.items()}

    if isinstance(obj, (datetime, date)):
        return to_iso_string(obj)

    if isinstance(obj, numpy.ndarray):
        return clean(obj.tolist(), options)

    if isinstance(obj, numpy.generic):
        return obj.item()

    return obj


def stringify(obj: Any, pretty: bool = False) -> str:
    """Serialise ``clean(obj)`` as JSON."""
    return json.dumps(clean(obj), indent=2 if pretty else None)
