"""
Husk reflective parser: the token matcher.

What this module provides
- ParseState: the per-call state machine (Start / AwaitingOptionValue / End).
- parse_arguments(cls, argv, **options): bind argv to a serializable dataclass and
  return (instance, rest).

Token rules (left to right)
- option-shaped ('-x', '--name', with or without '=value'):
  • '--name=value' / '-n=value': resolve the name, coerce the inline value, assign.
  • '--name' / '-n' on a boolean field: assign True, nothing else is consumed.
  • '--name' / '-n' on any other field: the next non-option token is its value.
  • unresolved names go to rest verbatim.
- non-option while an option awaits its value: coerced into that option's field.
- non-option otherwise: positional; the field whose order equals the cursor receives
  it (or rest does) and the cursor advances once.

Resolution is first-match in field declaration order.

Runtime options (from @serializable, overridable per call)
- shell: render faults with rich and exit(1) on errors instead of raising.
- fancy/colorful: rendering chrome for shell mode.
"""
import shlex
import sys
from collections.abc import Iterable

from .builder import Builder
from .coercion import coerce
from .descriptors import Kind, describe
from .faults import *
from .utils import *
from .validation import validate


def tokenize(argv, /):
    """
    normalize argv into a list of tokens.

    - Unset: sys.argv[1:]
    - str: shell-like string, split with shlex.split
    - Iterable[str]: used verbatim (every item must be a string)
    """
    if argv is Unset:
        return sys.argv[1:]
    if isinstance(argv, str):
        return shlex.split(argv)
    if isinstance(argv, Iterable):
        tokens = list(argv)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("argv must be a string or an iterable of strings")
        return tokens
    raise TypeError("argv must be a string or an iterable of strings")


def runtime_options(cls, overrides, /):
    """
    merge the class-level runtime options with per-call overrides.
    """
    options = dict(getattr(cls, "__husk__", {}))
    options.pop("compiled", None)
    for name in overrides:
        if name not in ("shell", "fancy", "colorful"):
            raise TypeError("unexpected option %r" % name)
    return options | overrides | {"target": cls}


def dangle(options, descriptor, token, following=None, /):
    """
    warn that an option awaiting its value never received one.

    - following: the option token that replaced it, or None at end of input.
    """
    if following is None:
        message = "option %r was given no value" % token
    else:
        message = "option %r was given no value before %r" % (token, following)
    trigger(DanglingOptionWarning(
        message,
        title="option without value",
        code=FaultCode.DANGLING_OPTION,
        hint="pass a value after %s, or use %s=<value>" % (token, token),
        field=descriptor.name,
        token=token,
    ), **options)


class ParseState:
    """
    State of one parse call. Created at parse start and discarded at the end.

    attributes
    - pending: descriptor awaiting its value, or None.
    - cursor: next positional order expected.
    - rest: tokens that matched nothing, in input order.
    - satisfied: descriptors that received a value.
    """

    def __init__(self, target, descriptors, options, /):
        self.target = target
        self.descriptors = descriptors
        self.options = options
        self.builder = Builder(target)
        self.pending = None
        self.pending_token = None
        self.cursor = 0
        self.rest = []
        self.satisfied = set()

    def resolve(self, name, /):
        for descriptor in self.descriptors:
            if descriptor.matches(name):
                return descriptor
        return None

    def assign(self, descriptor, value, /):
        self.builder.assign(descriptor, coerce(descriptor, value))
        self.satisfied.add(descriptor)

    def _await(self, descriptor, token, /):
        if self.pending is not None:
            dangle(self.options, self.pending, self.pending_token, token)
        self.pending = descriptor
        self.pending_token = token

    def feed(self, token, /):
        if token.startswith("-"):
            name, separator, value = token.partition("=")
            descriptor = self.resolve(name)
            if descriptor is None:
                self.rest.append(token)
            elif separator:
                self.assign(descriptor, value)
            elif descriptor.kind is Kind.BOOLEAN:
                self.builder.assign(descriptor, True)
                self.satisfied.add(descriptor)
            else:
                self._await(descriptor, token)
            return

        if self.pending is not None:
            descriptor, self.pending, self.pending_token = self.pending, None, None
            self.assign(descriptor, token)
            return

        for descriptor in self.descriptors:
            if descriptor.order == self.cursor:
                self.assign(descriptor, token)
                break
        else:
            self.rest.append(token)
        self.cursor += 1

    def finish(self):
        if self.pending is not None:
            dangle(self.options, self.pending, self.pending_token)
            self.pending = self.pending_token = None
        validate(self.descriptors, self.satisfied)
        return self.builder.build(self.descriptors), self.rest


def parse_arguments(cls, argv=Unset, /, **options):
    """
    bind a token sequence to a serializable dataclass.

    parameters
    - cls: dataclass decorated with @serializable.
    - argv: Unset (sys.argv[1:]) | str (shlex-split) | Iterable[str].
    - options: shell, fancy, colorful overrides.

    returns
    - (instance, rest): the built dataclass and the unmatched tokens in input order.

    raises (non-shell mode)
    - UnsupportedTargetError / DuplicateOrderError before any token is read.
    - InvalidValueError on the first token that cannot be coerced.
    - MissingRequiredArgumentError when required fields were not supplied.
    """
    options = runtime_options(cls, options)
    tokens = tokenize(argv)
    try:
        state = ParseState(cls, describe(cls), options)
        for token in tokens:
            state.feed(token)
        return state.finish()
    except HuskException as fault:
        trigger(fault, **options)


__all__ = (
    "ParseState",
    "parse_arguments",
)
