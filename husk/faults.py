"""
Husk faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every issue the binder can
  report. Codes are grouped by domain to keep logs/searches predictable.
- HuskException / HuskWarning: base types that carry message + options and
  know how to render themselves with rich.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).

Integration
- The parser collects the runtime options of the call (shell, fancy, colorful)
  and surfaces faults with trigger(fault, **options).
- In non-shell mode, exceptions are raised and warnings go through warnings.warn;
  in shell mode, both are rendered via rich on stderr and errors exit with status 1.

Host customization (read from __main__, all optional)
- __prog__: program name shown in headers (defaults to the target class name).
- __styles__: rich style overrides keyed by the style names used below.
- __codes__: mapping of FaultCode to custom labels.
"""
import copy
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the binder (stable identifiers).

    grouping (by high-level domain)
    - targets (2110x): UNSUPPORTED_TARGET, DUPLICATE_ORDER
    - values (2111x): INVALID_VALUE
    - validation (2112x): MISSING_REQUIRED_ARGUMENT
    - warnings (2211x): AMBIGUOUS_ALIAS, DANGLING_OPTION
    """
    # --- target errors ---
    UNSUPPORTED_TARGET        = 21101
    DUPLICATE_ORDER           = 21102

    # --- value errors ---
    INVALID_VALUE             = 21111

    # --- validation errors ---
    MISSING_REQUIRED_ARGUMENT = 21121

    # --- warnings ---
    AMBIGUOUS_ALIAS           = 22111
    DANGLING_OPTION           = 22112

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette):
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = fault.options.get("colorful", False)
    fancy = fault.options.get("fancy", False)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if colorful else "")

    target = fault.options.get("target")
    code = fault.options.get("code")
    prog = text(getattr(main, "__prog__", getattr(target, "__name__", "husk")), "prog-name")

    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(code.normalize() if code else "", "code"),
        " | ",
        text(str(fault.options.get("title", type(fault).__name__)).title(), "title"),
        " ]"
    )
    message = text(fault.message, "message")
    hint = Text.assemble(text(" → ", "hint-arrow"), text(fault.options.get("hint"), "hint"))

    if fancy:
        return Panel(Group(message, hint), title=header, title_align="left")
    return Group(header, message, hint)


class HuskException(Exception):
    """
    base type for every error raised while binding arguments.

    options
    - title, code, hint: rendering metadata.
    - target, field, value, missing, ...: context for the caller.
    - shell, fancy, colorful: runtime flags consumed by __trigger__/__rich__.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "title": "bold #FF4DA6",
            "message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

    def __trigger__(self):
        if not self.options.get("shell"):
            raise self from self.__cause__
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        fault = type(self)(self.message, **{**self.options, **overrides})
        fault.__cause__ = self.__cause__
        return fault


class UnsupportedTargetError(HuskException): ...
class DuplicateOrderError(UnsupportedTargetError): ...
class InvalidValueError(HuskException): ...
class MissingRequiredArgumentError(HuskException): ...


class HuskWarning(Warning):
    """
    base type for non-fatal binder diagnostics.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "title": "bold #FFC2E0",
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        })

    def __trigger__(self):
        if not self.options.get("shell"):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class AmbiguousAliasWarning(HuskWarning): ...
class DanglingOptionWarning(HuskWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - in shell mode, rendering happens via the rich console; otherwise, exceptions are
      raised and warnings are emitted.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "HuskException",
    "UnsupportedTargetError",
    "DuplicateOrderError",
    "InvalidValueError",
    "MissingRequiredArgumentError",
    "HuskWarning",
    "AmbiguousAliasWarning",
    "DanglingOptionWarning",
    "trigger",
)
