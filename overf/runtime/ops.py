"""
Overflow-aware arithmetic operations called by rewritten code.

Each function dispatches on its operands: a `FixedInt` operand (a plain
`int` partner is coerced into its type) or any object defining a method of
the same name decides the result; otherwise the host operator is used, which
never overflows for python's unbounded `int`.
"""
import operator

from overf.runtime.exceptions import OverflowPanic, Propagate
from overf.runtime.ints import FixedInt, describe

_HOST_BINARY = {
    "add": operator.add,
    "sub": operator.sub,
    "mul": operator.mul,
    "div": operator.floordiv,
    "rem": operator.mod,
}


def _host_checked(host):
    def fn(*args):
        try:
            return host(*args)
        except ZeroDivisionError:
            return None

    return fn


def _binary_op(kind: str, op: str):
    name = f"{kind}_{op}"
    host = _HOST_BINARY[op]
    if kind == "checked":
        host = _host_checked(host)

    def fn(a, b):
        if isinstance(a, FixedInt):
            return getattr(a, name)(b)
        if isinstance(b, FixedInt):
            return getattr(b._coerce(a), name)(b)
        method = getattr(a, name, None)
        if method is not None:
            return method(b)
        return host(a, b)

    fn.__name__ = fn.__qualname__ = name
    fn.__doc__ = f"`{kind}` form of {describe(op)} for any operand type."
    return fn


def _unary_op(kind: str):
    name = f"{kind}_neg"
    host = operator.neg
    if kind == "checked":
        host = _host_checked(host)

    def fn(a):
        method = getattr(a, name, None)
        if method is not None:
            return method()
        return host(a)

    fn.__name__ = fn.__qualname__ = name
    fn.__doc__ = f"`{kind}` form of negation for any operand type."
    return fn


checked_add = _binary_op("checked", "add")
checked_sub = _binary_op("checked", "sub")
checked_mul = _binary_op("checked", "mul")
checked_div = _binary_op("checked", "div")
checked_rem = _binary_op("checked", "rem")
checked_neg = _unary_op("checked")

wrapping_add = _binary_op("wrapping", "add")
wrapping_sub = _binary_op("wrapping", "sub")
wrapping_mul = _binary_op("wrapping", "mul")
wrapping_div = _binary_op("wrapping", "div")
wrapping_rem = _binary_op("wrapping", "rem")
wrapping_neg = _unary_op("wrapping")

saturating_add = _binary_op("saturating", "add")
saturating_sub = _binary_op("saturating", "sub")
saturating_mul = _binary_op("saturating", "mul")
saturating_div = _binary_op("saturating", "div")
saturating_rem = _binary_op("saturating", "rem")
saturating_neg = _unary_op("saturating")


def expect(value, op: str, source: str):
    """
    Unwrap the result of a checked operation, aborting on overflow.
    """
    if value is None:
        raise OverflowPanic(f"attempt to {describe(op)} with overflow: `{source}`")
    return value


def propagate(value):
    """
    Unwrap the result of a checked operation, signalling the enclosing
    statement guard to return from the function on overflow.
    """
    if value is None:
        raise Propagate()
    return value
