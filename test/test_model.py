#  -*- coding: utf-8 -*-
"""
Test suite for the type descriptor core.

Tests cover:
- Wrapping: coercion, error accumulation, identity and write-through
- Inheritance: property tables, overrides, compatibility
- Model.extend: configuration keys, hooks, prototypes, camelCase options
- Definition errors: reserved names, unresolvable types
- Property declarations: self references, registry names, storage keys,
  custom accessors, transient attributes, array accessors
- Lifecycle hooks and mixins
- clean, validate, stringify and the module-level helpers
"""

from __future__ import annotations

import gc
import json
import pytest
import weakref
import numpy as np

from datetime import date, datetime, timezone

from moldura import (Attribute, ArrayView, ArrayWrapError, CoercionError, Date, InstantiationError, Integer,
                     Mixin, Model, ModelDefinitionError, Number, Options, String, UnrecognizedAttributeError,
                     clean, create, is_model, stringify, unwrap)
from moldura.model import _wrappers


# ========== ========== ========== ========== Fixtures
@pytest.fixture
def person_type() -> type:
    """A record with a string and an integer property."""

    class Person(Model):
        properties = {'name': String, 'age': Integer}

    return Person


@pytest.fixture
def group_type(person_type: type) -> type:
    """A record holding an array of people."""

    class Group(Model):
        properties = {'title': String, 'people': {'type': [person_type], 'singular': 'member'}}

    return Group


# ========== ========== ========== ========== Wrapping
class TestWrap:
    """Test wrap, create and the write-through behaviour of instances."""

    def test_wraps_and_coerces(self, person_type: type) -> None:
        # Values are coerced through their declared types
        errors = []
        person = person_type.wrap({'name': 'John', 'age': '30'}, errors)

        assert person.name == 'John'
        assert person.age == 30
        assert errors == []

    def test_accumulates_failures(self, person_type: type) -> None:
        # A failing value is reported and left absent
        errors = []
        person = person_type.wrap({'age': 'not-a-number'}, errors)

        assert len(errors) == 1
        assert errors[0] == 'age: Invalid value: not-a-number'
        assert person.age is None
        assert 'age' not in person.unwrap()

    def test_throws_without_accumulator(self, person_type: type) -> None:
        # Without an accumulator the first failure raises
        with pytest.raises(CoercionError) as info:
            person_type.wrap({'age': 'abc'})

        assert info.value.attribute == 'age'
        assert info.value.value == 'abc'
        assert info.value.source is Model

    def test_every_failure_is_collected(self, person_type: type) -> None:
        # Accumulating mode keeps going after the first failure
        errors = []
        person_type.wrap({'name': 'A', 'age': 'x'}, errors)
        person_type.wrap({'age': [1, 2]}, errors)

        assert len(errors) == 2

    def test_wrap_is_idempotent(self, person_type: type) -> None:
        # Wrapping the same record twice yields the same wrapper
        raw = {'name': 'John'}
        first = person_type.wrap(raw)

        assert person_type.wrap(raw) is first
        assert person_type.wrap(first) is first

    def test_wrapper_lives_as_long_as_its_record(self) -> None:
        # Dropping the wrapper keeps it attached to the record it wraps
        calls = []

        class Counted(Model):
            properties = {'name': String}

            def init(self, data, options):
                calls.append(data.get('name'))

        raw = {'name': 'A'}
        Counted.wrap(raw).note = 'kept'
        gc.collect()

        again = Counted.wrap(raw)

        assert again.note == 'kept'
        assert calls == ['A']

    def test_sweep_keeps_reachable_records(self, person_type: type) -> None:
        raw = {'name': 'A'}
        person_type.wrap(raw).note = 'kept'

        _wrappers.sweep()
        gc.collect()

        assert person_type.wrap(raw).note == 'kept'

    def test_sweep_releases_unreachable_records(self, person_type: type) -> None:
        # Only the wrapper references the record, so nothing can wrap it again
        ref = weakref.ref(person_type.wrap({'name': 'B'}))

        _wrappers.sweep()
        gc.collect()

        assert ref() is None

    def test_swept_wrapper_held_by_caller_stays_attached(self, person_type: type) -> None:
        person = person_type.wrap({'name': 'C'})

        _wrappers.sweep()

        assert person_type.wrap(person.unwrap()) is person

    def test_failed_wrap_is_not_remembered(self, person_type: type) -> None:
        raw = {'name': 'D', 'age': 'x'}

        with pytest.raises(CoercionError):
            person_type.wrap(raw)

        raw['age'] = 4
        person = person_type.wrap(raw)

        assert person.age == 4
        assert person.name == 'D'

    def test_unwrap_round_trip(self, person_type: type) -> None:
        # Unwrapping a re-wrapped record gives back the same record
        person = person_type.wrap({'name': 'John'})

        assert unwrap(person_type.wrap(unwrap(person))) is unwrap(person)

    def test_record_is_processed_in_place(self, person_type: type) -> None:
        # The given record becomes the backing record
        raw = {'name': 'John', 'age': '30'}
        person = person_type.wrap(raw)

        assert person.unwrap() is raw
        assert person.data is raw
        assert raw['age'] == 30

    def test_writes_through(self, person_type: type) -> None:
        # Assignment coerces and stores into the backing record
        raw = {}
        person = person_type.wrap(raw)

        person.name = 'Jane'
        person.age = '41'

        assert raw == {'name': 'Jane', 'age': 41}

    def test_assignment_failure_raises(self, person_type: type) -> None:
        # Assignment runs in throwing mode
        person = person_type.wrap({'age': 3})

        with pytest.raises(CoercionError):
            person.age = 'three'

        assert 'age' not in person.unwrap()

    def test_delete_removes_the_value(self, person_type: type) -> None:
        person = person_type.wrap({'name': 'John'})

        del person.name

        assert person.name is None
        assert person.unwrap() == {}

    def test_wrap_none(self, person_type: type) -> None:
        assert person_type.wrap(None) is None

    def test_create_none_yields_empty_instance(self, person_type: type) -> None:
        # create differs from wrap on None only
        person = person_type.create()

        assert isinstance(person, person_type)
        assert person.unwrap() == {}

    def test_create_wraps_data(self, person_type: type) -> None:
        raw = {'name': 'John'}
        assert person_type.create(raw).unwrap() is raw

    def test_sequence_wraps_element_wise(self, person_type: type) -> None:
        # wrap on a list maps every element into a new array view
        people = person_type.wrap([{'name': 'A'}, {'name': 'B'}])

        assert isinstance(people, ArrayView)
        assert [person.name for person in people] == ['A', 'B']
        assert all(isinstance(person, person_type) for person in people)

    def test_constructing_from_sequence_raises(self, person_type: type) -> None:
        with pytest.raises(ArrayWrapError):
            person_type([{'name': 'A'}])

    def test_sequence_property_value_is_reported(self, person_type: type) -> None:
        # A list given to a non-array property is an error of that property

        class Team(Model):
            properties = {'lead': person_type}

        errors = []
        team = Team.wrap({'lead': [{'name': 'A'}]}, errors)

        assert len(errors) == 1
        assert team.lead is None

    def test_non_mapping_record_is_rejected(self, person_type: type) -> None:
        errors = []

        assert person_type.wrap('abc', errors) is None
        assert len(errors) == 1

        with pytest.raises(CoercionError):
            person_type('abc')

    def test_nested_model_shares_the_record(self, person_type: type) -> None:
        # Child wrappers are cached and write through to the nested record

        class Couple(Model):
            properties = {'first': person_type, 'second': person_type}

        raw = {'first': {'name': 'A'}, 'second': {'name': 'B'}}
        couple = Couple.wrap(raw)

        assert couple.first is couple.first
        assert couple.first.unwrap() is raw['first']

        couple.first.age = '7'
        assert raw['first']['age'] == 7

    def test_assigning_a_wrapper_stores_its_record(self, person_type: type) -> None:

        class Pair(Model):
            properties = {'left': person_type}

        person = person_type.wrap({'name': 'A'})
        pair = Pair.wrap({})
        pair.left = person

        assert pair.unwrap()['left'] is person.unwrap()
        assert pair.left is person

    def test_options_as_mapping(self, person_type: type) -> None:
        errors = []
        person_type.wrap({'age': '3'}, {'errors': errors, 'strict': True})

        assert len(errors) == 1

    def test_invalid_options_raise(self, person_type: type) -> None:
        with pytest.raises(TypeError):
            person_type.wrap({}, 42)


# ========== ========== ========== ========== Inheritance
class TestInheritance:
    """Test property tables along the inheritance chain."""

    def test_override_replaces_the_type(self) -> None:
        # A derived declaration of the same name wins

        class Base(Model):
            properties = {'p': String}

        class Derived(Base):
            properties = {'p': Integer}

        assert Derived.wrap({'p': '42'}).p == 42
        assert Base.wrap({'p': 42}).p == '42'

    def test_inherits_properties(self, person_type: type) -> None:

        class Employee(person_type):
            properties = {'salary': Number}

        assert list(Employee.properties) == ['name', 'age', 'salary']
        assert Employee.properties['name'] is person_type.properties['name']

        employee = Employee.wrap({'name': 'A', 'salary': '10.5'})
        assert employee.salary == 10.5
        assert employee.name == 'A'

    def test_compatibility_walks_the_chain(self, person_type: type) -> None:

        class Employee(person_type):
            pass

        assert Employee.super_type is person_type
        assert Employee.is_compatible_with(Employee)
        assert Employee.is_compatible_with(person_type)
        assert Employee.is_compatible_with(Model)
        assert not person_type.is_compatible_with(Employee)

    def test_for_each_property(self, person_type: type) -> None:

        class Employee(person_type):
            properties = {'salary': Number}

        everything, own = [], []
        Employee.for_each_property(lambda attribute: everything.append(attribute.name))
        Employee.for_each_property(lambda attribute: own.append(attribute.name), inherited=False)

        assert everything == ['name', 'age', 'salary']
        assert own == ['salary']

    def test_derived_instance_accepted_by_base_property(self, person_type: type) -> None:

        class Employee(person_type):
            pass

        class Office(Model):
            properties = {'manager': person_type}

        employee = Employee.wrap({'name': 'Boss'})
        office = Office.wrap({'manager': employee})

        assert office.unwrap()['manager'] is employee.unwrap()


# ========== ========== ========== ========== Model.extend
class TestExtend:
    """Test types defined from configurations."""

    def test_type_name_names_and_registers(self) -> None:
        point_type = Model.extend(type_name='ExtendPoint', properties={'x': Number, 'y': Number})

        assert point_type.__name__ == 'ExtendPoint'
        assert point_type.type_name == 'ExtendPoint'
        assert Model['ExtendPoint'] is point_type
        assert 'ExtendPoint' in Model
        assert point_type.wrap({'x': '1.5'}).x == 1.5

    def test_anonymous_type_is_not_registered(self) -> None:
        anonymous = Model.extend(properties={'x': Number})

        assert anonymous.type_name is None
        assert anonymous not in Model

    def test_additional_properties_round_trip(self) -> None:
        # Unknown keys are tolerated and preserved
        loose = Model.extend(additionalProperties=True)
        errors = []
        instance = loose.wrap({'a': 1, 'b': 2}, errors)

        assert loose.additional_properties is True
        assert errors == []
        assert instance.clean() == {'a': 1, 'b': 2}
        assert instance.get('a') == 1

        instance.set('c', 3)
        assert instance.unwrap()['c'] == 3

    def test_title_and_description(self) -> None:
        described = Model.extend(title='Point', description='A point in the plane')

        assert described.type_title == 'Point'
        assert described.type_description == 'A point in the plane'

    def test_wrap_false_makes_a_coercion_type(self) -> None:
        celsius = Model.extend(wrap=False, coerce=lambda cls, value, options: float(value))

        assert celsius.wrapped is False
        assert celsius.wrap('3') == 3.0

        class Reading(Model):
            properties = {'temperature': celsius}

        reading = Reading.wrap({'temperature': '21'})
        assert reading.temperature == 21.0

    def test_wrap_callable_is_a_factory(self) -> None:
        made = Model.extend(wrap=lambda cls, data, options: ('made', data))
        assert made.wrap(1) == ('made', 1)

    def test_coerce_hook_may_reject(self) -> None:

        def coerce(cls, value, options):
            if not isinstance(value, dict):
                cls.coercion_error(value, options, 'expected an object')
            return value

        strict_type = Model.extend(properties={'x': Integer}, coerce=coerce)
        errors = []

        assert strict_type.coerce(5, errors) is None
        assert errors == ['Invalid value: 5 - expected an object']
        assert strict_type.coerce({'x': '1'}).x == 1

    def test_prototype_adds_members(self) -> None:
        named = Model.extend(properties={'first': String, 'last': String},
                             prototype={'full_name': lambda self: f'{self.first} {self.last}'})

        assert named.wrap({'first': 'Ada', 'last': 'Lovelace'}).full_name() == 'Ada Lovelace'

    def test_clean_hook_replaces_the_walk(self) -> None:
        doubled = Model.extend(properties={'v': Integer}, clean=lambda cls, value, options: value.v * 2)
        assert doubled.wrap({'v': 2}).clean() == 4

    def test_after_clean_may_replace_the_result(self) -> None:
        tagged = Model.extend(properties={'v': Integer},
                              after_clean=lambda self, data, options: {**data, 'kind': 'tagged'})

        assert tagged.wrap({'v': '2'}).clean() == {'v': 2, 'kind': 'tagged'}

    def test_init_hook(self) -> None:
        seen = []
        hooked = Model.extend(properties={'v': Integer}, init=lambda self, data, options: seen.append(self.v))

        hooked.wrap({'v': '5'})
        assert seen == [5]

    def test_extend_a_declared_type(self, person_type: type) -> None:
        employee_type = person_type.extend(properties={'salary': Number})

        assert employee_type.super_type is person_type
        assert employee_type.__name__ == 'Person'
        assert set(employee_type.properties) == {'name', 'age', 'salary'}

    def test_unknown_options_become_class_attributes(self) -> None:
        marked = Model.extend(marker='x')
        assert marked.marker == 'x'

    def test_package_level_create(self) -> None:
        created = create({'type_name': 'CreatedRecord', 'properties': {'n': Integer}})

        assert created.__name__ == 'CreatedRecord'
        assert created.wrap({'n': '1'}).n == 1


# ========== ========== ========== ========== Definition errors
class TestDefinitionErrors:
    """Test types whose declaration cannot be compiled."""

    def test_reserved_property_name(self) -> None:
        with pytest.raises(ModelDefinitionError):

            class Reserved(Model):
                properties = {'clean': String}

    def test_invalid_type_name(self) -> None:
        with pytest.raises(ModelDefinitionError, match='Invalid type'):

            class Unknown(Model):
                properties = {'x': 'no-such-type'}

    def test_unrecognized_type(self) -> None:
        with pytest.raises(ModelDefinitionError, match='Unrecognized type'):

            class Unknown(Model):
                properties = {'x': 3.5}

    def test_unknown_configuration_key(self) -> None:
        with pytest.raises(ModelDefinitionError):

            class Unknown(Model):
                properties = {'x': {'type': String, 'bogus': True}}

    def test_invalid_mixin(self) -> None:
        with pytest.raises(ModelDefinitionError):
            Model.extend(mixins=[int])

    def test_is_a_type_error(self) -> None:
        # Definition errors are also TypeErrors
        assert issubclass(ModelDefinitionError, TypeError)

    def test_properties_must_be_a_mapping(self) -> None:
        with pytest.raises(ModelDefinitionError):

            class Listed(Model):
                properties = ['a', 'b']


# ========== ========== ========== ========== Property declarations
class TestPropertyDeclarations:
    """Test the accepted forms of property declarations."""

    def test_builtin_types(self) -> None:

        class Builtins(Model):
            properties = {'s': str, 'f': float, 'i': int, 'b': bool, 'd': datetime, 'o': dict}

        record = Builtins.wrap({'s': 1, 'f': '2.5', 'i': '3', 'b': 'true', 'd': 0, 'o': {'k': 1}})

        assert record.s == '1'
        assert record.f == 2.5
        assert record.i == 3
        assert record.b is True
        assert record.d == datetime(1970, 1, 1, tzinfo=timezone.utc)
        assert record.o == {'k': 1}

    def test_primitive_type_names(self) -> None:

        class Named(Model):
            properties = {'n': 'number', 'tags': 'string[]'}

        record = Named.wrap({'n': '4', 'tags': [1, 2]})

        assert record.n == 4
        assert record.tags == ['1', '2']

    def test_untyped_property_passes_values(self) -> None:

        class Loose(Model):
            properties = {'anything': None}

        value = object()
        assert Loose.wrap({'anything': value}).anything is value

    def test_self_references(self) -> None:

        class TreeNode(Model):
            properties = {'label': String, 'children': 'self[]', 'parent': 'self'}

        root = TreeNode.wrap({'label': 'root', 'children': [{'label': 'leaf'}], 'parent': None})

        assert TreeNode.properties['parent'].type is TreeNode
        assert TreeNode.properties['children'].item_type is TreeNode
        assert isinstance(root.children[0], TreeNode)
        assert root.children[0].label == 'leaf'
        assert root.parent is None

    def test_registry_reference(self) -> None:

        class Address(Model):
            type_name = 'RegistryAddress'
            properties = {'city': String}

        class Customer(Model):
            properties = {'address': 'RegistryAddress'}

        customer = Customer.wrap({'address': {'city': 'Lisbon'}})

        assert Customer.properties['address'].type is Address
        assert customer.address.city == 'Lisbon'

    def test_storage_key(self) -> None:
        # Values live under the storage key; the name is accepted on input

        class Keyed(Model):
            properties = {'id': {'type': String, 'key': '_id'}}

        assert Keyed.wrap({'_id': 'x'}).id == 'x'

        raw = {'id': 'y'}
        keyed = Keyed.wrap(raw)

        assert keyed.id == 'y'
        assert raw == {'_id': 'y'}
        assert keyed.clean() == {'_id': 'y'}

    def test_attribute_descriptors(self) -> None:

        class Entity(Model):
            id = Attribute(String, key='_id')
            tags = Attribute([String], singular='tag')

        entity = Entity.wrap({'_id': 1, 'tags': ['a']})

        assert isinstance(Entity.id, Attribute)
        assert Entity.properties['id'] is Entity.id
        assert entity.id == '1'
        assert entity.add_tag(2) == '2'
        assert entity.tags == ['a', '2']
        assert entity.get_tag(0) == 'a'
        assert list(entity.iter_tags()) == ['a', '2']

    def test_array_accessors_on_missing_value(self, group_type: type) -> None:
        # add_<singular> creates the array on first use
        group = group_type.wrap({})

        member = group.add_member({'name': 'A', 'age': '1'})

        assert member.age == 1
        assert group.get_member(0) is member
        assert group.unwrap()['people'] == [{'name': 'A', 'age': 1}]

    def test_custom_getter(self) -> None:

        class Rect(Model):
            properties = {
                'width': Number,
                'height': Number,
                'area': {'type': Number, 'get': lambda self, attribute: self.width * self.height, 'persist': False},
            }

        rect = Rect.wrap({'width': 2, 'height': 3})

        assert rect.area == 6
        assert rect.clean() == {'width': 2, 'height': 3}

    def test_custom_setter_receives_the_coerced_value(self) -> None:

        def set_name(self, value, attribute):
            self.data[attribute.key] = value.upper()

        class Shouting(Model):
            properties = {'name': {'type': String, 'set': set_name}}

        shouting = Shouting.wrap({'name': 'ada'})
        assert shouting.name == 'ADA'

        shouting.name = 5
        assert shouting.name == '5'

    def test_data_property_shadows_the_record_accessor(self) -> None:

        class Measurement(Model):
            properties = {'data': [Number]}

        measurement = Measurement.wrap({'data': [1, '2']})

        assert measurement.data == [1, 2]
        assert measurement.unwrap() == {'data': [1, 2]}

    def test_dollar_keys_are_ignored(self, person_type: type) -> None:
        errors = []
        person = person_type.wrap({'$meta': 1, 'name': 'x'}, errors)

        assert errors == []
        assert person.clean() == {'name': 'x'}


# ========== ========== ========== ========== Unknown keys
class TestUnknownKeys:
    """Test keys that match no declared property."""

    def test_reported_when_accumulating(self, person_type: type) -> None:
        errors = []
        person = person_type.wrap({'name': 'A', 'extra': 1}, errors)

        assert errors == ['Unrecognized attribute: extra']
        assert person.unwrap()['extra'] == 1

    def test_ignored_when_throwing(self, person_type: type) -> None:
        person = person_type.wrap({'name': 'A', 'extra': 1})
        assert person.clean() == {'name': 'A'}

    def test_get_unknown_raises(self, person_type: type) -> None:
        person = person_type.wrap({})

        with pytest.raises(UnrecognizedAttributeError):
            person.get('nope')

    def test_set_unknown_is_reported(self, person_type: type) -> None:
        person = person_type.wrap({})
        errors = []

        person.set('nope', 1, errors)

        assert errors == ['Unrecognized attribute: nope']

    def test_get_and_set_by_name(self, person_type: type) -> None:
        person = person_type.wrap({})
        person.set('age', '5')

        assert person.get('age') == 5


# ========== ========== ========== ========== Hooks and mixins
class TestHooks:
    """Test init hooks, on_set hooks and type initialisers."""

    def test_init_order(self) -> None:
        # Base init, then mixin init, then own init; after coercion
        calls = []

        class Tracked(Mixin):
            def init(self, data, options):
                calls.append('mixin')

        class Base(Model):
            properties = {'x': Integer}

            def init(self, data, options):
                calls.append(('base', data['x']))

        class Derived(Base, Tracked):
            def init(self, data, options):
                calls.append('derived')

        Derived.wrap({'x': '1'})

        assert calls == [('base', 1), 'mixin', 'derived']

    def test_init_runs_once_per_record(self) -> None:
        calls = []

        class Counted(Model):
            properties = {'x': Integer}

            def init(self, data, options):
                calls.append(1)

        raw = {'x': 1}
        first = Counted.wrap(raw)
        Counted.wrap(raw)

        assert first is not None
        assert len(calls) == 1

    def test_on_set_receives_change_events(self) -> None:

        class Audited(Mixin):
            def on_set(self, event):
                self.__dict__.setdefault('changes', []).append(
                    (event.property_name, event.old_value, event.new_value))

        class Account(Model, Audited):
            properties = {'balance': Number}

        account = Account.wrap({'balance': '10'})
        account.balance = 20
        account.balance = 20

        assert account.changes == [('balance', '10', 10), ('balance', 10, 20)]

    def test_init_type_runs_per_type(self) -> None:

        class Registered(Mixin):
            seen = []

            @classmethod
            def init_type(mixin, model_type):
                mixin.seen.append(model_type.__name__)

        class Widget(Model, Registered):
            pass

        class Gadget(Widget):
            pass

        assert Registered.seen == ['Widget']
        assert Gadget.mixins == (Registered,)


class TestMixins:
    """Test mixin application and de-duplication."""

    def test_contributes_properties_and_methods(self) -> None:

        class Named(Mixin):
            properties = {'name': String}

            def greet(self):
                return f'hello {self.name}'

        class Thing(Model, Named):
            properties = {'weight': Number}

        thing = Thing.wrap({'name': 'box', 'weight': '2'})

        assert set(Thing.properties) == {'name', 'weight'}
        assert thing.greet() == 'hello box'
        assert thing.weight == 2

    def test_attribute_declarations_in_mixins(self) -> None:

        class Stamped(Mixin):
            created = Attribute(Date)

        class Note(Model, Stamped):
            properties = {'text': String}

        note = Note.wrap({'created': 0})
        assert note.created == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_own_declaration_takes_precedence(self) -> None:

        class Named(Mixin):
            properties = {'name': String}

        class Numbered(Model, Named):
            properties = {'name': Integer}

        assert Numbered.properties['name'].type is Integer

    def test_mixins_option(self) -> None:

        class Named(Mixin):
            properties = {'name': String}

        class Listed(Model):
            mixins = [Named]

        extended = Model.extend(mixins=[Named])

        assert Listed.mixins == (Named,)
        assert issubclass(Listed, Named)
        assert extended.mixins == (Named,)
        assert extended.wrap({'name': 1}).name == '1'

    def test_applied_once_along_the_chain(self) -> None:

        class Named(Mixin):
            properties = {'name': String}

        class Base(Model, Named):
            pass

        class Derived(Base):
            mixins = [Named]

        assert Derived.mixins == (Named,)

    def test_same_mixin_id_is_the_same_mixin(self) -> None:

        class First(Mixin):
            mixin_id = 'shared'

        class Second(Mixin):
            mixin_id = 'shared'

        class Both(Model):
            mixins = [First, Second]

        class Later(Both):
            mixins = [Second]

        assert Both.mixins == (First,)
        assert Later.mixins == (First,)

    def test_nested_mixins(self) -> None:

        class Inner(Mixin):
            pass

        class Outer(Mixin):
            mixins = (Inner,)

        class Child(Outer):
            pass

        class Host(Model):
            mixins = [Child]

        assert Host.mixins == (Inner, Outer, Child)


# ========== ========== ========== ========== Clean
class TestClean:
    """Test the projection into plain data."""

    def test_nested_round_trip(self, group_type: type) -> None:
        raw = {'people': [{'name': 'A', 'age': 1}, {'name': 'B', 'age': 2}]}
        group = group_type.wrap(raw)

        assert group.clean() == {'people': [{'name': 'A', 'age': 1}, {'name': 'B', 'age': 2}]}

    def test_clean_is_json_ready(self, group_type: type) -> None:
        group = group_type.wrap({'title': 'g', 'people': [{'name': 'A', 'age': '1'}]})
        text = stringify(group)

        assert json.loads(text) == {'title': 'g', 'people': [{'name': 'A', 'age': 1}]}
        assert json.loads(group.stringify(pretty=True)) == json.loads(text)

    def test_absent_values_are_omitted(self, person_type: type) -> None:
        assert person_type.wrap({'name': 'A'}).clean() == {'name': 'A'}

    def test_none_values_are_kept(self, person_type: type) -> None:
        assert person_type.wrap({'name': None}).clean() == {'name': None}

    def test_dates_become_iso_strings(self) -> None:

        class Event(Model):
            properties = {'when': Date}

        event = Event.wrap({'when': '2016-04-13T18:00:00.000Z'})

        assert event.clean() == {'when': '2016-04-13T18:00:00.000Z'}
        assert Event.wrap(json.loads(event.stringify())).when == event.when

    def test_unknown_keys_reported_when_accumulating(self, person_type: type) -> None:
        person = person_type.wrap({'name': 'A', 'extra': 1})
        errors = []

        assert person.clean(errors) == {'name': 'A'}
        assert errors == ['Unrecognized attribute: extra']


# ========== ========== ========== ========== Validate and queries
class TestValidate:
    """Test validate and strict mode."""

    def test_returns_instance_and_errors(self, person_type: type) -> None:
        instance, errors = person_type.validate({'name': 'J', 'age': 'x'})

        assert instance.name == 'J'
        assert len(errors) == 1

    def test_valid_data_has_no_errors(self, person_type: type) -> None:
        _, errors = person_type.validate({'name': 'J', 'age': 3})
        assert errors == []

    def test_strict_rejects_conversions(self, person_type: type) -> None:
        _, errors = person_type.validate({'age': '30'}, strict=True)
        assert len(errors) == 1


class TestTypeQueries:
    """Test the introspection API of types."""

    def test_property_queries(self, person_type: type) -> None:
        assert person_type.has_property('name')
        assert not person_type.has_property('nope')
        assert person_type.get_property('age').type is Integer
        assert list(person_type.get_properties()) == ['name', 'age']
        assert person_type.has_properties()

    def test_flags(self, person_type: type) -> None:
        assert person_type.is_wrapped()
        assert not person_type.is_primitive()
        assert not String.is_wrapped()
        assert String.is_primitive()

    def test_registry_lookup(self) -> None:
        assert Model['string'] is String
        assert 'integer' in Model
        assert Integer in Model

        with pytest.raises(KeyError):
            Model['NoSuchRegisteredType']

    def test_subscript_on_other_types(self, person_type: type) -> None:
        with pytest.raises(KeyError):
            person_type['x']

        with pytest.raises(TypeError, match='does not support membership tests'):
            'x' in person_type

    def test_is_instance(self, person_type: type) -> None:
        assert person_type.is_instance(person_type.wrap({}))
        assert not person_type.is_instance({})

    def test_coercion_error(self, person_type: type) -> None:
        with pytest.raises(CoercionError) as info:
            person_type.coercion_error('v', None, 'bad')

        assert str(info.value) == 'Invalid value: v - bad'
        assert info.value.source is Model

    def test_coercion_error_names_the_attribute(self, person_type: type) -> None:
        options = Options()

        with options.for_attribute(person_type.properties['age']):
            with pytest.raises(CoercionError) as info:
                Integer.coercion_error('v', options)

        assert str(info.value) == 'age: Invalid value: v'


class TestConstruction:
    """Test construction guards."""

    def test_primitives_cannot_be_constructed(self) -> None:
        with pytest.raises(InstantiationError):
            String('x')

    def test_prevent_construction(self) -> None:
        sealed = Model.extend(properties={'x': Integer})
        sealed.prevent_construction()

        with pytest.raises(InstantiationError):
            sealed({'x': 1})

    def test_constructable_option(self) -> None:
        sealed = Model.extend(constructable=False)

        with pytest.raises(InstantiationError):
            sealed({})


# ========== ========== ========== ========== Module helpers
class TestModuleHelpers:
    """Test clean, unwrap and is_model on arbitrary values."""

    def test_is_model(self, person_type: type) -> None:
        assert is_model(person_type.wrap({}))
        assert not is_model({})

    def test_unwrap_passes_plain_values(self) -> None:
        value = {'a': 1}
        assert unwrap(value) is value

    def test_clean_walks_containers(self, person_type: type) -> None:
        people = [person_type.wrap({'name': 'A'}), {'nested': person_type.wrap({'age': '2'})}]

        assert clean(people) == [{'name': 'A'}, {'nested': {'age': 2}}]
        assert clean((1, 2)) == [1, 2]
        assert clean(None) is None

    def test_clean_numpy_values(self) -> None:
        assert clean(np.array([[1, 2], [3, 4]])) == [[1, 2], [3, 4]]
        assert clean(np.float64(1.5)) == 1.5
        assert type(clean(np.int64(3))) is int

    def test_clean_dates(self) -> None:
        assert clean(date(2020, 1, 2)) == '2020-01-02T00:00:00.000Z'
        assert clean(datetime(2020, 1, 2, 3, 4, 5, 6000)) == '2020-01-02T03:04:05.006Z'
