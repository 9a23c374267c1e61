"""
Value equality for plain objects.
"""
import threading

_comparing = threading.local()


class CommonEqualityMixin:
    """
    Instances of the same class are equal when their attributes are equal. Instances are mutable
    and therefore not hashable.

    Objects whose attributes refer back to each other cannot be compared: ValueError is raised
    instead of recursing without end.
    """

    __hash__ = None

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        pairs = _comparing.__dict__.setdefault('pairs', set())
        pair = (id(self), id(other))
        if pair in pairs:
            raise ValueError("recursive comparison of %s instances" % type(self).__name__)
        pairs.add(pair)
        try:
            return vars(self) == vars(other)
        finally:
            pairs.discard(pair)
