#  -*- coding: utf-8 -*-
"""
Moldura: typed models over plain data.

Moldura compiles declarative type definitions into runtime types that wrap
plain records (dicts and lists), coerce every property through its declared
type, collect errors instead of raising when asked to, and project
instances back into plain, JSON-ready data.

Key Features
------------
- **Declarative types**: class statements or ``Model.extend`` configurations
- **Coercion with two failure modes**: raise on the first error, or collect
  every error in an accumulator
- **Identity-preserving wrappers**: wrapping the same record twice yields the
  same instance, and the instance writes through to the record
- **Composable mixins**: properties, methods and lifecycle hooks
- **Enumerations**: singleton values with ordinals and identity tests
- **Rich terminal output**: panels and tables through the Rich library

Modules
-------
model
    Type descriptor core: ModelMetatype, Model, Mixin and the module-level
    clean/unwrap/stringify functions
attribute
    Per-property metadata and type resolution
primitives
    String, Number, Integer, Boolean, Date, Function, Object and AnyValue
array
    Array adapter and ArrayView
enum
    Enumeration builder
display
    Rich rendering of model instances

Examples
--------
>>> from moldura import Model, String, Integer
>>>
>>> class Person(Model):
...     properties = {'name': String, 'age': Integer}
>>>
>>> errors = []
>>> person = Person.wrap({'name': 'John', 'age': 'thirty'}, errors)
>>> errors
['age: Invalid value: thirty']
>>> person.clean()
{'name': 'John'}
"""


from .errors import *
from .options import Options
from .attribute import Attribute
from .model import Model, Mixin, ModelMetatype, PropertyChange, clean, is_model, stringify, unwrap
from .array import Array, ArrayView
from .primitives import AnyValue, Boolean, Date, Function, Integer, Number, Object, String
from .enum import Enum
from .display import Alignment, DisplaySettings, Displayable


__all__ = [
    "ModelError",
    "CoercionError",
    "InvalidEnumValueError",
    "UnrecognizedAttributeError",
    "InstantiationError",
    "ArrayWrapError",
    "ModelDefinitionError",
    "Options",
    "Attribute",
    "Model",
    "Mixin",
    "ModelMetatype",
    "PropertyChange",
    "Array",
    "ArrayView",
    "AnyValue",
    "Boolean",
    "Date",
    "Function",
    "Integer",
    "Number",
    "Object",
    "String",
    "Enum",
    "Alignment",
    "DisplaySettings",
    "Displayable",
    "clean",
    "create",
    "create_enum",
    "is_model",
    "stringify",
    "unwrap",
]


def create(config: dict | None = None, **kwargs) -> type:
    """Define a model type from a configuration (see ``Model.extend``)."""
    return Model.extend(**{**(config or {}), **kwargs})


def create_enum(config, **kwargs) -> type:
    """Define an enumeration type (see ``Enum.create``)."""
    return Enum.create(config, **kwargs)


try:
    # this will run if moldura is installed
    from importlib.metadata import metadata, PackageNotFoundError

    meta = metadata('moldura')

    # Access specific fields
    __author__ = meta['Author-email'] or meta['Author']
    __license__ = meta['License']
    __version__ = meta['Version']

except PackageNotFoundError:
    # this will run during development
    import toml
    from pathlib import Path

    pyproject_filepath = Path(__file__).parent.parent / "pyproject.toml"

    with pyproject_filepath.open() as file:
        pyproject = toml.load(file)

    __version__ = pyproject["project"]["version"]
    __author__ = pyproject["project"]["authors"][0]["name"]
    __license__ = pyproject["project"]["license"]["text"]
