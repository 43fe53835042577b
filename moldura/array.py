#  -*- coding: utf-8 -*-
"""
Array adapter.

Records hold array values as plain lists of raw elements: the backing
record of a model, the name of an enum value, the coerced value of a
primitive. Array-typed properties read as an ``ArrayView``, a typed handle
over that list bound to the declared item type, which converts on the way
in and out:

- indexing, slicing, iteration and ``pop`` return wrapped elements,
- ``append``, ``insert``, ``extend``, item assignment and ``+=`` coerce the
  incoming elements and store their raw form in the backing list.

The record itself stays plain data (``json.dumps`` and ``copy.deepcopy``
see the raw elements).

Examples
--------
>>> class Group(Model):
...     properties = {'people': [Person]}
>>> group = Group.wrap({'people': [{'name': 'A'}]})
>>> group.people[0].name
'A'
>>> group.add_person({'name': 'B'}).name
'B'
>>> group.unwrap()['people']
[{'name': 'A'}, {'name': 'B'}]
"""

from __future__ import annotations

import numpy

from collections.abc import MutableSequence

from moldura.errors import ArrayWrapError, CoercionError
from moldura.model import Model, View, clean, unwrap
from moldura.options import Options

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Iterable, Iterator, SupportsIndex

from moldura.attribute import Attribute


class ArrayView(View, MutableSequence):
    """
    Typed handle over a plain list of raw elements.

    Parameters
    ----------
    values : iterable, optional
        Raw elements. A ``list`` is adopted as the backing list, so writes
        through the view show up in it. Any other iterable is copied.
    item_type : type, optional
        Element type. Without one, elements are stored and returned
        unchanged.
    item_attribute : Attribute, optional
        Element declaration, used as coercion context.
    """

    # ========== ========== ========== ========== ========== class attributes
    __slots__ = ('_items', 'item_type', 'item_attribute', '_wrappers')

    __hash__ = None

    # ========== ========== ========== ========== ========== special methods
    def __init__(self,
                 values: Iterable[Any] = (),
                 item_type: type[Model] | None = None,
                 item_attribute: Attribute | None = None) -> None:

        self._items: list[Any] = values if type(values) is list else list(values)
        self.item_type: type[Model] | None = item_type
        self.item_attribute: Attribute | None = item_attribute
        self._wrappers: dict[int, Any] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: SupportsIndex | slice) -> Any:
        if isinstance(index, slice):
            return [self._wrap_item(raw) for raw in self._items[index]]

        return self._wrap_item(self._items[index])

    def __iter__(self) -> Iterator[Any]:
        for raw in self._items:
            yield self._wrap_item(raw)

    def __setitem__(self, index: SupportsIndex | slice, value: Any) -> None:
        options = Options()

        if isinstance(index, slice):
            self._items[index] = [self._to_raw(item, options) for item in value]
        else:
            self._items[index] = self._to_raw(value, options)

    def __delitem__(self, index: SupportsIndex | slice) -> None:
        del self._items[index]

    def __contains__(self, value: Any) -> bool:
        return unwrap(value) in self._items

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ArrayView):
            return self._items == other._items

        if isinstance(other, list):
            return list(self) == other

        return NotImplemented

    def __repr__(self) -> str:
        return f'ArrayView({self._items!r})'

    # ========== ========== ========== ========== ========== private methods
    def _wrap_item(self, raw: Any) -> Any:
        item_type = self.item_type

        if raw is None or item_type is None or not item_type.wrapped or item_type.auto_unwrap:
            return raw

        wrapper = self._wrappers.get(id(raw))

        if wrapper is not None and unwrap(wrapper) is raw:
            return wrapper

        options = Options()
        with options.for_attribute(self.item_attribute):
            wrapper = item_type._wrap(raw, options)

        self._wrappers[id(raw)] = wrapper
        return wrapper

    def _to_raw(self, value: Any, options: Options) -> Any:
        item_type = self.item_type

        if item_type is None:
            return value

        with options.for_attribute(self.item_attribute):

            if isinstance(value, Model) and isinstance(value, item_type):
                raw = value.unwrap()
                self._wrappers[id(raw)] = value
                return raw

            if item_type.wrapped:
                wrapper = item_type._wrap(value, options)
                raw = unwrap(wrapper)

                if wrapper is not None:
                    self._wrappers[id(raw)] = wrapper

                return raw

            if item_type._coerce is not None:
                return item_type._coerce(value, options)

        return value

    # ========== ========== ========== ========== ========== public methods
    def insert(self, index: SupportsIndex, value: Any) -> None:
        self._items.insert(index, self._to_raw(value, Options()))

    def append(self, value: Any) -> None:
        self._items.append(self._to_raw(value, Options()))

    def extend(self, values: Iterable[Any]) -> None:
        options = Options()
        self._items.extend([self._to_raw(value, options) for value in values])

    def pop(self, index: SupportsIndex = -1) -> Any:
        return self._wrap_item(self._items.pop(index))

    def remove(self, value: Any) -> None:
        self._items.remove(unwrap(value))

    def index(self, value: Any, *args: Any) -> int:
        return self._items.index(unwrap(value), *args)

    def count(self, value: Any) -> int:
        return self._items.count(unwrap(value))

    def add(self, value: Any, options: Any = None) -> Any:
        """
        Coerce and append one element.

        Returns
        -------
        object
            The wrapped element, or None if it failed coercion in
            accumulating mode.
        """
        options = Options.of(options)

        try:
            raw = self._to_raw(value, options)
        except (CoercionError, ArrayWrapError) as error:
            options.report(error)
            return None

        self._items.append(raw)
        return self._wrap_item(raw)

    def raw(self) -> list[Any]:
        """Return a copy of the stored elements as a plain list."""
        return list(self._items)

    def unwrap(self) -> list[Any]:
        """Return the backing list."""
        return self._items


class Array(Model):
    """
    Adapter for homogeneous sequences.

    The item type comes from the ``items`` declaration of the attribute in
    context. Element order is always preserved. In accumulating mode an
    element that fails coercion is reported and stored as ``None``.

    A plain list is coerced in place and becomes the backing list of the
    returned view. Tuples, numpy arrays and views of another item type are
    copied into a new list.
    """

    # ========== ========== ========== ========== ========== class attributes
    type_name = 'array'
    constructable = False
    primitive = True

    # ========== ========== ========== ========== ========== coercion hooks
    def coerce(cls, value: Any, options: Options) -> ArrayView | None:
        if value is None:
            return None

        items = options.attribute.items if options.attribute is not None else None
        item_type = None if items is None else items.type

        if isinstance(value, ArrayView):

            if value.item_type is item_type:
                return value

            value = list(value)

        if isinstance(value, numpy.ndarray):
            value = value.tolist()

        if not isinstance(value, (list, tuple)):

            if options.strict:
                cls.coercion_error(value, options, 'Expected a sequence')

            value = [value]

        view = cls.convert(value, item_type, options, items)

        if type(value) is list:
            value[:] = view._items
            view._items = value

        return view

    def clean_value(cls, value: Any, options: Options) -> list[Any]:
        item_type = getattr(value, 'item_type', None)
        result = []

        for item in value:

            if item is None:
                result.append(None)

            elif isinstance(item, Model):
                result.append(item.clean(options))

            elif item_type is not None and item_type.clean_value is not None:
                result.append(item_type.clean_value(item, options))

            else:
                result.append(clean(item, options))

        return result

    # ========== ========== ========== ========== ========== protected methods
    @classmethod
    def _wrap(cls, data: Any, options: Options) -> ArrayView | None:
        return cls._coerce(data, options)

    # ========== ========== ========== ========== ========== public methods
    @classmethod
    def convert(cls,
                values: Iterable[Any],
                item_type: type[Model] | None,
                options: Options,
                items: Attribute | None = None) -> ArrayView:
        """Build a new view over a new list holding the raw form of each of ``values``."""
        view = ArrayView((), item_type, items)

        for value in values:

            try:
                raw = view._to_raw(value, options)
            except (CoercionError, ArrayWrapError) as error:
                options.report(error)
                raw = None

            view._items.append(raw)

        return view

    @classmethod
    def wrap(cls, data: Any, options: Any = None) -> ArrayView | None:
        return cls.coerce(data, options)

    @classmethod
    def is_instance(cls, value: Any) -> bool:
        return isinstance(value, ArrayView)
