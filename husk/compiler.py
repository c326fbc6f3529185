"""
Husk compiled parser: a specialized matcher generated per target type.

What this module provides
- compile_parser(cls): emit, exec and cache a parse function specialized to the
  descriptors of a serializable dataclass.
- parse_compiled(cls, argv, **options): run it with the same contract as
  parse_arguments (same options, same faults, same (instance, rest) result).

Specialization
- alias resolution is unrolled into literal comparisons in declaration order,
  with case-insensitive aliases folded once at generation time.
- boolean fields are a literal set of indices.
- positional dispatch is a match statement over the cursor.
- coercion, building and validation are shared with the reflective parser, so
  both paths behave identically.

The generated source is kept on the function as __source__ for inspection.
"""
import functools
import textwrap

from .builder import Builder
from .coercion import coerce
from .descriptors import Kind, describe
from .faults import *
from .parser import dangle, runtime_options, tokenize
from .utils import *
from .validation import validate


def _emit_resolver(descriptors, /):
    """
    emit the body of resolve(name) -> index | None.
    """
    longs = []
    shorts = []
    for index, descriptor in enumerate(descriptors):
        if descriptor.long is not None:
            if descriptor.ignore_case_long:
                longs.append("if folded == %r: return %d" % (descriptor.long.lower(), index))
            else:
                longs.append("if tail == %r: return %d" % (descriptor.long, index))
        if descriptor.short is not None:
            if descriptor.ignore_case_short:
                shorts.append("if folded == %r: return %d" % (descriptor.short.lower(), index))
            else:
                shorts.append("if tail == %r: return %d" % (descriptor.short, index))

    lines = ["if name.startswith('--'):"]
    lines.append("    tail = name[2:]")
    lines.append("    folded = tail.lower()")
    lines.extend("    " + line for line in longs)
    lines.append("    return None")
    lines.append("tail = name[1:]")
    lines.append("folded = tail.lower()")
    lines.extend(shorts)
    lines.append("return None")
    return lines


def _emit_positionals(descriptors, /):
    """
    emit the positional dispatch over 'cursor'.
    """
    cases = [
        (descriptor.order, index)
        for index, descriptor in enumerate(descriptors)
        if descriptor.positional
    ]
    if not cases:
        return ["rest.append(token)"]
    lines = ["match cursor:"]
    for order, index in sorted(cases):
        lines.append("    case %d:" % order)
        lines.append("        builder.assign(fields[%d], coerce(fields[%d], token))" % (index, index))
        lines.append("        satisfied.add(fields[%d])" % index)
    lines.append("    case _:")
    lines.append("        rest.append(token)")
    return lines


def _indent(lines, depth, /):
    return textwrap.indent("\n".join(lines), "    " * depth)


@functools.cache
def compile_parser(cls, /):
    """
    build (once per type) the specialized parse function of a serializable dataclass.

    returns
    - a function parse(tokens, options) -> (instance, rest) with a __source__ attribute.

    raises
    - UnsupportedTargetError / DuplicateOrderError from descriptor extraction.
    """
    descriptors = describe(cls)
    flags = frozenset(index for index, descriptor in enumerate(descriptors) if descriptor.kind is Kind.BOOLEAN)

    source = textwrap.dedent("""
        def resolve(name):
        {resolver}

        @rename("parse")
        def parse(tokens, options):
            builder = Builder(target)
            satisfied = set()
            rest = []
            pending = None
            pending_token = None
            cursor = 0
            for token in tokens:
                if token.startswith("-"):
                    name, separator, value = token.partition("=")
                    index = resolve(name)
                    if index is None:
                        rest.append(token)
                    elif separator:
                        builder.assign(fields[index], coerce(fields[index], value))
                        satisfied.add(fields[index])
                    elif index in {flags}:
                        builder.assign(fields[index], True)
                        satisfied.add(fields[index])
                    else:
                        if pending is not None:
                            dangle(options, fields[pending], pending_token, token)
                        pending, pending_token = index, token
                    continue
                if pending is not None:
                    builder.assign(fields[pending], coerce(fields[pending], token))
                    satisfied.add(fields[pending])
                    pending = pending_token = None
                    continue
        {positionals}
                cursor += 1
            if pending is not None:
                dangle(options, fields[pending], pending_token)
            validate(fields, satisfied)
            return builder.build(fields), rest
    """).format(
        resolver=_indent(_emit_resolver(descriptors), 1),
        flags=repr(set(flags)) if flags else "()",
        positionals=_indent(_emit_positionals(descriptors), 2),
    )

    namespace = {
        "Builder": Builder,
        "coerce": coerce,
        "validate": validate,
        "dangle": dangle,
        "rename": rename,
        "target": cls,
        "fields": descriptors,
    }
    exec(compile(source, "<husk:%s>" % cls.__qualname__, "exec"), namespace)

    parse = namespace["parse"]
    parse.__qualname__ = "%s.parse" % cls.__qualname__
    parse.__doc__ = "Specialized parser generated for %s." % cls.__qualname__
    parse.__source__ = source
    return parse


def parse_compiled(cls, argv=Unset, /, **options):
    """
    bind a token sequence to a serializable dataclass with its compiled parser.

    same contract as parse_arguments: returns (instance, rest) and surfaces
    UnsupportedTargetError, InvalidValueError and MissingRequiredArgumentError.
    """
    options = runtime_options(cls, options)
    tokens = tokenize(argv)
    try:
        return compile_parser(cls)(tokens, options)
    except HuskException as fault:
        trigger(fault, **options)


__all__ = (
    "compile_parser",
    "parse_compiled",
)
