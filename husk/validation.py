"""
Post-parse validation of required arguments.
"""
from .faults import *


def validate(descriptors, satisfied, /):
    """
    ensure every required descriptor was satisfied by the parse.

    parameters
    - descriptors: the target's descriptors, in declaration order.
    - satisfied: set of descriptors that received a value.

    raises
    - MissingRequiredArgumentError naming every missing field (declaration order);
      options carry the descriptors under 'missing'.
    """
    missing = tuple(descriptor for descriptor in descriptors if descriptor.required and descriptor not in satisfied)
    if not missing:
        return

    if len(missing) == 1:
        message = "missing required argument %s" % missing[0].describe()
    else:
        message = "missing required arguments %s" % ", ".join(descriptor.describe() for descriptor in missing)

    raise MissingRequiredArgumentError(
        message,
        title="missing required argument",
        code=FaultCode.MISSING_REQUIRED_ARGUMENT,
        hint="pass %s" % " and ".join(
            (descriptor.aliases or ("a value at position %d" % descriptor.order,))[0] for descriptor in missing
        ),
        missing=missing,
    )


__all__ = (
    "validate",
)
