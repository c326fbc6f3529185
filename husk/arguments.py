r"""
Husk argument metadata.

Overview
- Argument: per-field metadata describing how a dataclass field binds to the
  command line. It is attached through typing.Annotated:

    >>> from dataclasses import dataclass
    >>> from typing import Annotated
    >>> from husk import Argument, serializable
    >>> @serializable
    ... @dataclass
    ... class Build:
    ...     target: Annotated[str, Argument("target", "t", required=True)] = ""
    ...     jobs: Annotated[int, Argument("jobs", "j")] = 1
    ...     source: Annotated[str, Argument(order=0)] = "."

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes the
    fields listed in __introspectable__ via read-only properties.

Metadata (sanitized on construction)
- long: Unset | None | str, long alias written without the leading "--".
- short: Unset | None | str, short alias written without the leading "-".
- order: int, positional index (>= 0) or -1 for "not positional".
- required: bool, the field must be satisfied by the end of the parse.
- ignore_case_long: bool (default True), case-folding for the long alias.
- ignore_case_short: bool (default False), case-folding for the short alias.
- converter: Unset | Callable[[str], T], overrides the per-type parse routine.

Validation highlights
- Aliases must match r"[^\s=-][^\s=]*" (no leading dash, no whitespace, no '=').
- order must be an integer greater than or equal to -1.
- An argument with neither alias nor order could never be matched and is rejected.
"""
import functools
import operator
import re

from .utils import *


class ArgumentType(type):
    """
    Metaclass that turns metadata specs into introspectable, read-only records.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - argument(long='jobs', short='j', order=-1, ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers.
            """
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate Argument metadata in place.

    Raises
    - TypeError: when a field has the wrong type.
    - ValueError: when a field has the right type but an unacceptable value.
    """
    for key in ("long", "short"):
        if not isinstance(alias := metadata[key], str | Unset | None):
            raise TypeError(f"{cls.__typename__} {key!r} must be a string or None")
        elif isinstance(alias, str) and not re.fullmatch(r"[^\s=-][^\s=]*", alias):
            raise ValueError(f"{cls.__typename__} {key!r} must be a non-empty name without dashes, spaces or '='")
        metadata[key] = coalesce(alias)

    # bool is an int subclass, but True/False are not meaningful positions
    if not isinstance(order := metadata["order"], int) or isinstance(order, bool):
        raise TypeError(f"{cls.__typename__} 'order' must be an integer")
    elif order < -1:
        raise ValueError(f"{cls.__typename__} 'order' must be -1 or a non-negative integer")

    for key in ("required", "ignore_case_long", "ignore_case_short"):
        if not isinstance(metadata[key], bool):
            raise TypeError(f"{cls.__typename__} {key!r} must be a boolean")

    if not (metadata["converter"] is Unset or callable(metadata["converter"])):
        raise TypeError(f"{cls.__typename__} 'converter' must be callable")
    metadata["converter"] = coalesce(metadata["converter"])

    if metadata["long"] is None and metadata["short"] is None and order == -1:
        raise TypeError(f"{cls.__typename__} must specify a 'long' or 'short' name, or an 'order'")


class Argument(metaclass=ArgumentType):
    """
    Binding metadata for one dataclass field.

    An Argument with a long or short name is matched by alias ("--long", "-s");
    one with an order is matched by position; both can be combined.
    """

    __introspectable__ = (
        "long",
        "short",
        "order",
        "required",
        "ignore_case_long",
        "ignore_case_short",
        "converter",
    )

    def __new__(
            cls,
            long=Unset,
            short=Unset,
            /,
            order=-1,
            required=False,
            *,
            ignore_case_long=True,
            ignore_case_short=False,
            converter=Unset,
    ):
        metadata = {
            "long": long,
            "short": short,
            "order": order,
            "required": required,
            "ignore_case_long": ignore_case_long,
            "ignore_case_short": ignore_case_short,
            "converter": converter,
        }
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def positional(self):
        return self.order != -1


__all__ = (
    "Argument",
)
