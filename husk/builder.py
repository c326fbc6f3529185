"""
Instance builder: accumulates resolved values and constructs the target once.
"""
import dataclasses

from .descriptors import Kind


class Builder:
    """
    Collect (descriptor, value) pairs during a parse and build the dataclass at the end.

    - scalar-like fields keep the last assigned value.
    - collection fields accumulate every occurrence, in order, and are materialized
      with the descriptor's container (list, tuple, set, frozenset).
    - fields that never received a value keep their dataclass default.
    """

    def __init__(self, target, /):
        self._target = target
        self._values = {}

    def assign(self, descriptor, value, /):
        if descriptor.kind is Kind.COLLECTION:
            self._values.setdefault(descriptor.name, []).append(value)
        else:
            self._values[descriptor.name] = value

    def build(self, descriptors, /):
        containers = {descriptor.name: descriptor.container for descriptor in descriptors if descriptor.kind is Kind.COLLECTION}
        arguments = {}
        # keyword order follows field declaration order
        for field in dataclasses.fields(self._target):
            if field.name not in self._values:
                continue
            value = self._values[field.name]
            if field.name in containers:
                value = containers[field.name](value)
            arguments[field.name] = value
        return self._target(**arguments)


__all__ = (
    "Builder",
)
