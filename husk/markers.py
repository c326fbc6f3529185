"""
Class markers: @serializable.

Usage
    >>> @serializable
    ... @dataclass
    ... class Options:
    ...     name: Annotated[str, Argument("name", "n", required=True)] = ""
    >>> Options.from_args(["--name", "husk"])
    Options(name='husk')

    >>> @serializable(compiled=False, shell=True)
    ... @dataclass
    ... class Tool: ...

Options (stored read-only in cls.__husk__)
- compiled: bool (default True), route from_args/parse_args through the generated
  parser; False uses the reflective parser. Both behave identically.
- shell: bool (default False), render faults with rich and exit on errors.
- fancy: bool (default False), render faults inside panels.
- colorful: bool (default False), colorize rendered faults.

Attached classmethods
- parse_args(argv=Unset, **options) -> (instance, rest)
- from_args(argv=Unset, **options) -> instance
- from_sys_args(**options) -> instance, parsing sys.argv[1:] in shell mode by default.
"""
import dataclasses
from types import MappingProxyType

from .compiler import parse_compiled
from .faults import *
from .parser import parse_arguments
from .utils import *


def _parse_args(cls, argv=Unset, /, **options):
    """
    Bind argv to this class and return (instance, rest).
    """
    if cls.__husk__["compiled"]:
        return parse_compiled(cls, argv, **options)
    return parse_arguments(cls, argv, **options)


def _from_args(cls, argv=Unset, /, **options):
    """
    Bind argv to this class and return the instance (unmatched tokens are dropped).
    """
    instance, _ = cls.parse_args(argv, **options)
    return instance


def _from_sys_args(cls, **options):
    """
    Bind sys.argv[1:] to this class; faults are rendered and exit the process unless shell=False.
    """
    return cls.from_args(Unset, **{"shell": True} | options)


def serializable(source=Unset, /, *, compiled=True, shell=False, fancy=False, colorful=False):
    """
    Mark a dataclass as bindable from command-line tokens, or return a decorator doing so.

    Raises
    - UnsupportedTargetError: when applied to something that is not a dataclass.
    - TypeError: when an option is not a boolean.
    """
    options = {"compiled": compiled, "shell": shell, "fancy": fancy, "colorful": colorful}
    for name, value in options.items():
        if not isinstance(value, bool):
            raise TypeError("@serializable() %r must be a boolean" % name)

    @rename("serializable")
    def wrapper(cls, /):
        if not isinstance(cls, type) or not dataclasses.is_dataclass(cls):
            raise UnsupportedTargetError(
                "@serializable must be applied to a dataclass, not %r" % (cls,),
                title="unsupported target",
                code=FaultCode.UNSUPPORTED_TARGET,
                hint="apply @serializable on top of @dataclass",
                target=cls,
            )
        cls.__husk__ = MappingProxyType(dict(options))
        cls.parse_args = classmethod(_parse_args)
        cls.from_args = classmethod(_from_args)
        cls.from_sys_args = classmethod(_from_sys_args)
        return cls

    return wrapper(source) if source is not Unset else wrapper


__all__ = (
    "serializable",
)
