"""
Husk utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the arguments, descriptors and parser layers.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/"".

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated callables (the compiled parsers)
    for clean tracebacks.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr).

- StorageGuard / view("attr")
  • Write-once storage for records that must be immutable once built
    (field descriptors). Backing fields live under '-name' and are served
    through read-only views.

Quick examples
    >>> one = coalesce(Unset, "fallback")  # "fallback"
    >>> two = coalesce(None, "fallback")    # None  (None is preserved)
    >>> @rename("parse")
    ... def generated(): ...
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from contextlib import contextmanager
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset" for friendly diagnostics.
    - Non-subclassable: this type is sealed; do not subclass.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations (e.g., str | UnsetType).
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when UnsetType appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        """
        Ensure a single instance for this sentinel type.
        """
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        """
        Disallow subclassing to preserve sentinel semantics.
        """
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsey values like None, 0, "" are preserved as-is; only Unset is replaced.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable (updated in place)
    - rename(name) -> decorator

    Notes
    - Some built-in or C-implemented callables are not updatable and will
      raise TypeError.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads from "_{name}" on the instance.

    Example
    - Given self._order, declare order = mirror("order") to expose it safely.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return getattr(self, "_" + name)

    return property(getter)


class StorageGuard:
    """
    internal mixin for records that are immutable once built.

    rules
    - attributes whose name starts with '-' are backing storage and cannot be read
      directly (AttributeError); they are published through view(...) properties.
    - any attribute can only be written during the guarded build phase:
        with super().__new__(cls) as self:
            setattr(self, "-field", value)
        # after the 'with' block, the instance is read-only.
    """
    __slots__ = ("__building", "__dict__")

    @contextmanager
    def __new__(cls):
        self = super().__new__(cls)
        object.__setattr__(self, "_StorageGuard__building", True)
        try:
            yield self
        finally:
            object.__setattr__(self, "_StorageGuard__building", False)

    def __getattribute__(self, name, /):
        if isinstance(name, str) and name.startswith("-"):
            raise AttributeError("internal storage is not accessible")
        return object.__getattribute__(self, name)

    def __setattr__(self, name, value, /):
        if not object.__getattribute__(self, "_StorageGuard__building"):
            raise AttributeError("%s is read-only" % type(self).__name__)
        return object.__setattr__(self, name, value)

    def __delattr__(self, name, /):
        raise AttributeError("%s is read-only" % type(self).__name__)


def view(name):
    """
    internal: build a read-only view over a '-name' backing field.

    behavior
    - Sequence (non-str) → tuple
    - Mapping           → MappingProxyType
    - Set               → frozenset
    - other types       → returned as-is
    """

    @rename(name)
    def getter(self):
        value = object.__getattribute__(self, "-" + name)
        if isinstance(value, Sequence) and not isinstance(value, str):
            return tuple(value)
        if isinstance(value, Mapping):
            return MappingProxyType(value)
        if isinstance(value, Set):
            return frozenset(value)
        return value

    return property(getter)


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Use Unset as a default when None is a valid, user-meaningful value but you still
need to distinguish “no input” from “explicitly passed None”.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "view",

    # Types
    "UnsetType",
    "StorageGuard",

    # Constants
    "Unset",
)
