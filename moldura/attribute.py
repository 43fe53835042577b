#  -*- coding: utf-8 -*-
"""
Per-property metadata.

An ``Attribute`` records everything the model layer needs to know about one
declared property: its public ``name``, the ``key`` under which its value
lives in the backing record, the declared ``type`` (a model type or a
primitive adapter), the element declaration ``items`` for arrays, optional
custom accessors and the ``persisted`` flag consulted by ``clean``.

Attributes are also descriptors, in the manner of ``property``: accessed on
the class they return themselves, accessed on an instance they run the get
protocol of the owning model, and assignment runs its set protocol.

Property configurations
-----------------------
A property may be declared as

- a bare type: ``String``, ``str``, ``Person``, ``'integer'``, ``'self'``,
- array sugar: ``[Person]``, ``[[Item]]``, ``[]``, ``'self[]'``,
  ``'integer[]'``,
- a full configuration mapping: ``{'type': String, 'key': '_id',
  'items': ..., 'get': ..., 'set': ..., 'persist': False, 'singular': ...}``,
- an ``Attribute`` instance.

``to_attribute`` normalises any of these into a canonical ``Attribute``
bound to its owner type.
"""

from __future__ import annotations

from collections.abc import Mapping

from moldura.errors import ModelDefinitionError

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Callable, Self, TypeAlias


Getter: TypeAlias = Callable[[object, 'Attribute'], Any]
Setter: TypeAlias = Callable[[object, Any, 'Attribute'], None]

ATTRIBUTE_CONFIG_KEYS = frozenset(('type', 'key', 'items', 'get', 'set', 'persist', 'singular', 'doc'))


class Attribute:
    """
    Descriptor and metadata record of a declared property.

    Parameters
    ----------
    type : object, optional
        Declared type, in any of the forms accepted by property
        configurations. If omitted, values pass through unchanged.
    key : str, optional
        Storage key in the backing record. Defaults to the attribute name.
    items : object, optional
        Element declaration for array-typed attributes.
    get : callable, optional
        Custom getter with signature ``get(instance, attribute) -> value``.
    set : callable, optional
        Custom setter with signature ``set(instance, value, attribute)``. It
        receives the coerced value and is responsible for storing it.
    persist : bool, default True
        If False, the attribute is transient and omitted by ``clean``.
    singular : str, optional
        Singular name used for the per-item accessors of array attributes.
    doc : str, optional
        Docstring.

    Attributes
    ----------
    name : str
        Public accessor name (set when the attribute is bound to a type).
    key : str
        Storage key.
    type : type
        Resolved type descriptor.
    items : Attribute or None
        Resolved element attribute, for arrays.
    owner : type
        Type that declared the attribute.

    Examples
    --------
    >>> class Entity(Model):
    ...     id = Attribute(String, key='_id')
    ...     tags = Attribute([String], singular='tag')
    """

    # ========== ========== ========== ========== ========== class attributes
    __slots__ = ('declared', 'declared_items', 'type', 'items', 'fget', 'fset',
                 '_key', '_persist', '_singular', 'name', 'owner', 'doc', '__weakref__')

    # ========== ========== ========== ========== ========== special methods
    def __init__(self,
                 type: Any = None,
                 *,
                 key: str | None = None,
                 items: Any = None,
                 get: Getter | None = None,
                 set: Setter | None = None,
                 persist: bool = True,
                 singular: str | None = None,
                 doc: str | None = None) -> None:

        self.declared: Any = type
        self.declared_items: Any = items

        self.type: type | None = None
        self.items: Attribute | None = None

        self.fget: Getter | None = get
        self.fset: Setter | None = set

        self._key: str | None = key
        self._persist: bool = persist is not False
        self._singular: str | None = singular

        self.name: str | None = None
        self.owner: type | None = None

        self.doc: str | None = doc

    def __set_name__(self, owner: type, name: str) -> None:
        # the metatype binds attributes itself; this only covers plain classes
        if self.name is None:
            self.name = name
            self.owner = owner

    def __get__(self, instance: object | None, owner: type) -> Any:
        if instance is None:
            return self

        return instance._get_attribute_value(self)

    def __set__(self, instance: object, value: Any) -> None:
        instance._set_attribute_value(self, value, None)

    def __delete__(self, instance: object) -> None:
        instance._delete_attribute_value(self)

    def __repr__(self) -> str:
        type_name = getattr(self.type, 'type_name', None) or repr(self.declared)
        return f'Attribute(name={self.name!r}, key={self.key!r}, type={type_name})'

    # ========== ========== ========== ========== ========== public methods
    def copy(self, **changes: Any) -> Self:
        """Return an unbound copy of this declaration with ``changes`` applied."""
        config = dict(type=self.declared,
                      key=self._key,
                      items=self.declared_items,
                      get=self.fget,
                      set=self.fset,
                      persist=self._persist,
                      singular=self._singular,
                      doc=self.doc)
        config.update(changes)
        return type(self)(**config)

    def bind(self, owner: type, name: str) -> Self:
        """
        Compile this declaration for ``owner`` under ``name``.

        Returns a fresh attribute whose ``type`` and ``items`` are resolved
        (``'self'`` resolves to ``owner``). The declaration itself is left
        untouched so that mixins may share it between types.

        Raises
        ------
        ModelDefinitionError
            If the declared type cannot be resolved.
        """
        attribute = self.copy()
        attribute.name = name
        attribute.owner = owner

        attribute.type, items = resolve_type(attribute.declared, owner, name)

        if attribute.declared_items is not None:
            items = attribute.declared_items

        if items is not None:
            attribute.items = to_attribute(name, items, owner)
            attribute.items._key = attribute.key

        return attribute

    def getter(self, fget: Getter) -> Self:
        """Return a copy of this declaration with a custom getter."""
        return self.copy(get=fget)

    def setter(self, fset: Setter) -> Self:
        """Return a copy of this declaration with a custom setter."""
        return self.copy(set=fset)

    def get_name(self) -> str | None:
        return self.name

    def get_key(self) -> str | None:
        return self.key

    def get_type(self) -> type | None:
        return self.type

    def get_items(self) -> Attribute | None:
        return self.items

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def key(self) -> str | None:
        """str: storage key in the backing record (defaults to ``name``)."""
        return self._key or self.name

    @property
    def item_type(self) -> type | None:
        """type or None: element type of an array attribute."""
        return None if self.items is None else self.items.type

    @property
    def persisted(self) -> bool:
        """bool: False for transient attributes, which ``clean`` omits."""
        return self._persist

    @property
    def singular(self) -> str | None:
        """str or None: explicit singular name for per-item accessors."""
        return self._singular


def to_attribute(name: str, config: Any, owner: type) -> Attribute:
    """
    Normalise a property configuration into an ``Attribute`` bound to
    ``owner``.

    Raises
    ------
    ModelDefinitionError
        If the configuration mapping has unknown keys or its type cannot be
        resolved.
    """
    if isinstance(config, Attribute):
        return config.bind(owner, name)

    if isinstance(config, Mapping):
        unknown = set(config) - ATTRIBUTE_CONFIG_KEYS

        if unknown:
            raise ModelDefinitionError(f'Unknown configuration for property "{name}": {sorted(unknown)}')

        return Attribute(**config).bind(owner, name)

    return Attribute(config).bind(owner, name)


def resolve_type(declared: Any, owner: type, name: str) -> tuple[type, Any]:
    """
    Resolve a declared type into ``(type, items)``.

    ``items`` is the element declaration if ``declared`` is array sugar and
    None otherwise.

    Raises
    ------
    ModelDefinitionError
        If the declaration is not recognised.
    """
    from moldura.model import Model
    from moldura.array import Array
    from moldura.primitives import AnyValue, BUILTIN_TYPES

    if declared is None:
        return AnyValue, None

    if isinstance(declared, (list, tuple)):
        return Array, (declared[0] if len(declared) and declared[0] is not None else None)

    if isinstance(declared, str):
        return _resolve_type_name(declared, owner, name)

    if isinstance(declared, type) and issubclass(declared, Model):
        return declared, None

    try:
        if declared in BUILTIN_TYPES:
            return BUILTIN_TYPES[declared], None
    except TypeError:
        pass

    raise ModelDefinitionError(f'Unrecognized type {declared!r} for property "{name}". '
                               f'Expected type derived from Model or primitive type.')


def _resolve_type_name(type_name: str, owner: type, name: str) -> tuple[type, Any]:
    from moldura.model import Model
    from moldura.array import Array
    from moldura.primitives import PRIMITIVES

    if type_name.endswith('[]'):
        return Array, type_name[:-2]

    if type_name in PRIMITIVES:
        return PRIMITIVES[type_name], None

    if type_name == 'self':
        return owner, None

    if type_name in Model:
        return Model[type_name], None

    raise ModelDefinitionError(f'Invalid type: {type_name} (property "{name}")')
