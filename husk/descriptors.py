"""
Field descriptor extraction.

What this module provides
- Kind: the closed set of field kinds the coercion layer dispatches on.
- FieldDescriptor: the compiled, immutable binding record of one dataclass field.
- describe(cls): inspect a serializable dataclass and return its descriptors in
  declaration order (cached per type).

Kind detection (after unwrapping Optional[T] / T | None)
- COLLECTION: any non-text iterable that is parameterized (deque[str], MyBag[int]),
  a standard container (tuple; list, set, frozenset, deque and their subclasses), an
  abstract Iterable/Collection/Sequence/Set alias, or a class deriving from
  collections.abc.Iterable. str, bytes and bytearray never count; mappings are
  rejected. The element type is the first type argument, or object.
- ENUM / NULLABLE_ENUM: enum.Enum subclasses, plain or Optional-wrapped.
- NULLABLE: any other Optional-wrapped type.
- BOOLEAN: exactly bool.
- SCALAR: everything else (numbers, strings, dates, custom converters, ...).

Target contract (checked before any token is processed)
- the class is a dataclass marked with @serializable.
- every init field can be built without a token: it has a default, or it is a
  required argument.
- positional orders are unique.
"""
import collections.abc
import dataclasses
import enum
import functools
import inspect
import types
import typing
from collections import Counter

from .arguments import Argument
from .faults import *
from .utils import *


class Kind(enum.Enum):
    BOOLEAN = "boolean"
    ENUM = "enum"
    NULLABLE_ENUM = "nullable-enum"
    NULLABLE = "nullable"
    COLLECTION = "collection"
    SCALAR = "scalar"


# abstract collection aliases are materialized with the closest concrete container
_ABSTRACT_CONTAINERS = {
    collections.abc.Iterable: tuple,
    collections.abc.Reversible: tuple,
    collections.abc.Collection: tuple,
    collections.abc.Sequence: tuple,
    collections.abc.MutableSequence: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
}

# bare (unparameterized) types that still count as collections, with their subclasses
_CONTAINERS = (list, set, frozenset, collections.deque)

# iterable, but parsed from a single token
_TEXT = (str, bytes, bytearray)


def _container(hint, origin, /):
    """
    return the constructor materializing a collection field of type 'hint', or None
    when the type is not a collection.

    - iterables other than text count when they are parameterized (deque[str]),
      standard containers, or classes deriving from collections.abc.Iterable;
      other iterables (named tuples, networks, ...) stay scalars.
    - abstract aliases map to a concrete container, concrete types build themselves.
    - mappings and abstract types without a concrete counterpart are rejected.
    """
    if not isinstance(origin, type) or not issubclass(origin, collections.abc.Iterable):
        return None
    if issubclass(origin, _TEXT):
        return None
    if issubclass(origin, collections.abc.Mapping):
        raise TypeError("mappings cannot be bound to command-line tokens, got %r" % hint)
    if not (
        typing.get_args(hint) or
        origin is tuple or
        issubclass(origin, _CONTAINERS) or
        origin in _ABSTRACT_CONTAINERS or
        collections.abc.Iterable in origin.__mro__
    ):
        return None
    if origin in _ABSTRACT_CONTAINERS:
        return _ABSTRACT_CONTAINERS[origin]
    if inspect.isabstract(origin) or origin.__module__ == "collections.abc":
        raise TypeError("no concrete container for %r" % hint)
    return origin


class FieldDescriptor(StorageGuard):
    """
    Compiled metadata describing how one target field binds to command-line tokens.

    Every attribute is read-only; descriptors are shared by every parse of their
    target type and compared by identity.
    """

    __fields__ = (
        "name",
        "type",
        "long",
        "short",
        "order",
        "required",
        "ignore_case_long",
        "ignore_case_short",
        "converter",
        "kind",
        "value_type",
        "enum_type",
        "element_type",
        "container",
    )

    def __new__(cls, name, type, argument, kind, value_type, *, enum_type=None, element_type=None, container=None):
        with super().__new__(cls) as self:
            for field, value in {
                "name": name,
                "type": type,
                "long": argument.long,
                "short": argument.short,
                "order": argument.order,
                "required": argument.required,
                "ignore_case_long": argument.ignore_case_long,
                "ignore_case_short": argument.ignore_case_short,
                "converter": argument.converter,
                "kind": kind,
                "value_type": value_type,
                "enum_type": enum_type,
                "element_type": element_type,
                "container": container,
            }.items():
                setattr(self, "-" + field, value)
        return self

    @property
    def positional(self):
        return self.order != -1

    @property
    def aliases(self):
        """
        the alias spellings of this field, as typed on a command line.
        """
        aliases = []
        if self.long is not None:
            aliases.append("--" + self.long)
        if self.short is not None:
            aliases.append("-" + self.short)
        return tuple(aliases)

    def matches(self, name, /):
        """
        return whether an option name (with its dashes, without any '=value') selects this field.

        - '--x' compares against the long alias, '-x' against the short alias.
        - each alias form applies its own case-folding policy.
        """
        if name.startswith("--"):
            if self.long is None:
                return False
            if self.ignore_case_long:
                return name[2:].lower() == self.long.lower()
            return name[2:] == self.long
        if name.startswith("-"):
            if self.short is None:
                return False
            if self.ignore_case_short:
                return name[1:].lower() == self.short.lower()
            return name[1:] == self.short
        return False

    def describe(self):
        """
        human-friendly label used in fault messages: "'name' (--long, -s, position 0)".
        """
        forms = list(self.aliases)
        if self.positional:
            forms.append("position %d" % self.order)
        return "%r (%s)" % (self.name, ", ".join(forms))

    def __repr__(self):
        return "field-descriptor(name=%r, kind=%s, aliases=%r, order=%d, required=%r)" % (
            self.name, self.kind.value, self.aliases, self.order, self.required
        )

    def __rich_repr__(self):
        for field in type(self).__fields__:
            yield field, getattr(self, field)


for _field in FieldDescriptor.__fields__:
    setattr(FieldDescriptor, _field, view(_field))
del _field


def _unwrap_optional(hint, /):
    """
    return (inner, nullable) for T | None / Optional[T]; other unions are rejected.
    """
    if typing.get_origin(hint) not in (typing.Union, types.UnionType):
        return hint, False
    arguments = [argument for argument in typing.get_args(hint) if argument is not type(None)]
    if len(arguments) != 1:
        raise TypeError("only 'T | None' unions are supported, got %r" % hint)
    return arguments[0], True


def _classify(name, hint, argument, /):
    """
    derive the kind and the per-token value type of a field from its type hint.
    """
    inner, nullable = _unwrap_optional(hint)
    origin = typing.get_origin(inner) or inner

    # flag enums are iterable
    if isinstance(inner, type) and issubclass(inner, enum.Enum):
        kind = Kind.NULLABLE_ENUM if nullable else Kind.ENUM
        return FieldDescriptor(name, hint, argument, kind, inner, enum_type=inner)

    if (container := _container(inner, origin)) is not None:
        parameters = typing.get_args(inner)
        element_type = parameters[0] if parameters else object
        if element_type is Ellipsis:
            element_type = object
        return FieldDescriptor(
            name, hint, argument, Kind.COLLECTION, element_type,
            element_type=element_type,
            container=container,
        )

    if nullable:
        return FieldDescriptor(name, hint, argument, Kind.NULLABLE, inner)

    if inner is bool:
        return FieldDescriptor(name, hint, argument, Kind.BOOLEAN, bool)

    return FieldDescriptor(name, hint, argument, Kind.SCALAR, inner)


def _find_argument(hint, /):
    """
    return (stripped_hint, argument) when the hint is Annotated with an Argument, else (hint, None).
    """
    if typing.get_origin(hint) is not typing.Annotated:
        return hint, None
    for metadata in hint.__metadata__:
        if isinstance(metadata, Argument):
            return hint.__origin__, metadata
    return hint.__origin__, None


@functools.cache
def describe(cls, /):
    """
    extract the ordered field descriptors of a serializable dataclass.

    returns
    - tuple[FieldDescriptor, ...] in field declaration order (fields without an
      Argument are skipped).

    raises
    - UnsupportedTargetError: the class is not a marked dataclass, a field type is
      not supported, or a field cannot be left out of construction.
    - DuplicateOrderError: two positional fields share the same order.

    warns
    - AmbiguousAliasWarning: an alias spelling is declared by more than one field;
      the first field in declaration order wins.
    """
    if not isinstance(cls, type) or not dataclasses.is_dataclass(cls):
        raise UnsupportedTargetError(
            "%r is not a dataclass" % (cls,),
            title="unsupported target",
            code=FaultCode.UNSUPPORTED_TARGET,
            hint="decorate the class with @serializable on top of @dataclass",
            target=cls,
        )
    if "__husk__" not in vars(cls):
        raise UnsupportedTargetError(
            "%s is not marked as serializable" % cls.__name__,
            title="unsupported target",
            code=FaultCode.UNSUPPORTED_TARGET,
            hint="decorate the class with @serializable",
            target=cls,
        )

    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except NameError as exception:
        raise UnsupportedTargetError(
            "cannot resolve the type hints of %s: %s" % (cls.__name__, exception),
            title="unsupported target",
            code=FaultCode.UNSUPPORTED_TARGET,
            hint="make sure every annotation refers to a name importable from the class module",
            target=cls,
        ) from exception

    descriptors = []
    for field in dataclasses.fields(cls):
        hint, argument = _find_argument(hints.get(field.name, field.type))
        defaulted = field.default is not dataclasses.MISSING or field.default_factory is not dataclasses.MISSING

        if argument is None:
            if field.init and not defaulted:
                raise UnsupportedTargetError(
                    "field %r of %s has no default and no argument binding" % (field.name, cls.__name__),
                    title="unsupported target",
                    code=FaultCode.UNSUPPORTED_TARGET,
                    hint="give the field a default value or an Argument",
                    target=cls,
                    field=field.name,
                )
            continue

        if not field.init:
            raise UnsupportedTargetError(
                "field %r of %s is bound to an argument but excluded from __init__" % (field.name, cls.__name__),
                title="unsupported target",
                code=FaultCode.UNSUPPORTED_TARGET,
                hint="remove init=False from the field or drop its Argument",
                target=cls,
                field=field.name,
            )
        if not (defaulted or argument.required):
            raise UnsupportedTargetError(
                "optional field %r of %s has no default" % (field.name, cls.__name__),
                title="unsupported target",
                code=FaultCode.UNSUPPORTED_TARGET,
                hint="give the field a default value or mark its Argument as required",
                target=cls,
                field=field.name,
            )

        try:
            descriptors.append(_classify(field.name, hint, argument))
        except TypeError as exception:
            raise UnsupportedTargetError(
                "field %r of %s: %s" % (field.name, cls.__name__, exception),
                title="unsupported target",
                code=FaultCode.UNSUPPORTED_TARGET,
                hint="use a single type, optionally combined with None",
                target=cls,
                field=field.name,
            ) from exception

    orders = Counter(descriptor.order for descriptor in descriptors if descriptor.positional)
    for order, count in orders.items():
        if count > 1:
            raise DuplicateOrderError(
                "position %d of %s is claimed by %s" % (order, cls.__name__, ", ".join(
                    repr(descriptor.name) for descriptor in descriptors if descriptor.order == order
                )),
                title="duplicate position",
                code=FaultCode.DUPLICATE_ORDER,
                hint="give every positional argument its own order",
                target=cls,
                order=order,
            )

    seen = {}
    for descriptor in descriptors:
        for alias in descriptor.aliases:
            # case-insensitive aliases shadow every spelling of the same name
            if alias.startswith("--"):
                ignore = descriptor.ignore_case_long
            else:
                ignore = descriptor.ignore_case_short
            folded = alias.lower() if ignore else alias
            if folded in seen:
                trigger(AmbiguousAliasWarning(
                    "alias %r of %r is shadowed by %r" % (alias, descriptor.name, seen[folded].name),
                    title="ambiguous alias",
                    code=FaultCode.AMBIGUOUS_ALIAS,
                    hint="the first field in declaration order wins; rename one of them",
                    target=cls,
                    field=descriptor.name,
                    alias=alias,
                ), **vars(cls)["__husk__"])
            else:
                seen[folded] = descriptor

    return tuple(descriptors)


__all__ = (
    "Kind",
    "FieldDescriptor",
    "describe",
)
