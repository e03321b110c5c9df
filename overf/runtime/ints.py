import functools
import operator
from typing import Optional, Tuple

from overf.utils import int_bounds, trunc_div, trunc_rem, wrap_to_bits

# exact (unbounded) semantics of each governed operation
_EXACT = {
    "add": operator.add,
    "sub": operator.sub,
    "mul": operator.mul,
    "div": trunc_div,
    "rem": trunc_rem,
}

_VERBS = {
    "add": "add",
    "sub": "subtract",
    "mul": "multiply",
    "div": "divide",
    "rem": "calculate the remainder",
    "neg": "negate",
}


def describe(op: str) -> str:
    return _VERBS[op]


@functools.total_ordering
class FixedInt:
    """
    Fixed-width two's complement integer.

    Concrete types are declared by subclassing with the width and
    signedness, e.g. ``class Int8(FixedInt, bits=8, signed=True)``.

    The host operators behave like machine integers in a debug build:
    overflow raises OverflowError, `//` truncates toward zero and `%` takes
    the sign of the dividend. The `checked_*`, `wrapping_*`,
    `saturating_*` and `overflowing_*` methods give explicit control over
    the overflow behavior.

    Attributes
    ----------
    bits : int
        Number of bits the value occupies
    is_signed : bool
        Is the value signed?
    MIN, MAX : int
        Bounds of the representable range
    """

    __slots__ = ("value",)

    bits: int
    is_signed: bool
    MIN: int
    MAX: int
    type_id: str

    def __init_subclass__(cls, bits: int, signed: bool, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.bits = bits
        cls.is_signed = signed
        cls.MIN, cls.MAX = int_bounds(signed, bits)
        u = "u" if not signed else ""
        cls.type_id = f"{u}int{bits}"

    def __init__(self, value: int = 0):
        if isinstance(value, FixedInt):
            value = value.value
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{self.type_id} requires an integer, got {type(value).__name__}")
        if not self.MIN <= value <= self.MAX:
            raise OverflowError(f"{value} is out of bounds for {self.type_id}")
        self.value = value

    def _coerce(self, other) -> "FixedInt":
        if type(other) is type(self):
            return other
        if isinstance(other, FixedInt):
            raise TypeError(
                f"unsupported operand types for {self.type_id}: {other.type_id} "
                "(convert explicitly)"
            )
        return type(self)(other)

    def _exact(self, op: str, other) -> int:
        # raises ZeroDivisionError for div/rem by zero
        other = self._coerce(other)
        return _EXACT[op](self.value, other.value)

    def _in_range(self, result: int) -> bool:
        return self.MIN <= result <= self.MAX

    def _checked(self, op: str, other) -> Optional["FixedInt"]:
        try:
            result = self._exact(op, other)
        except ZeroDivisionError:
            return None
        if not self._in_range(result):
            return None
        return type(self)(result)

    def _wrapping(self, op: str, other) -> "FixedInt":
        result = self._exact(op, other)
        return type(self)(wrap_to_bits(result, self.is_signed, self.bits))

    def _saturating(self, op: str, other) -> "FixedInt":
        result = self._exact(op, other)
        return type(self)(min(max(result, self.MIN), self.MAX))

    def _overflowing(self, op: str, other) -> Tuple["FixedInt", bool]:
        result = self._exact(op, other)
        wrapped = wrap_to_bits(result, self.is_signed, self.bits)
        return type(self)(wrapped), wrapped != result

    def _strict(self, op: str, other) -> "FixedInt":
        result = self._checked(op, other)
        if result is None:
            # surface division by zero as the host does
            self._exact(op, other)
            raise OverflowError(f"attempt to {describe(op)} with overflow")
        return result

    # checked forms: None on overflow or division by zero
    def checked_add(self, other):
        return self._checked("add", other)

    def checked_sub(self, other):
        return self._checked("sub", other)

    def checked_mul(self, other):
        return self._checked("mul", other)

    def checked_div(self, other):
        return self._checked("div", other)

    def checked_rem(self, other):
        return self._checked("rem", other)

    def checked_neg(self):
        return type(self)(0)._checked("sub", self)

    # wrapping forms: modulo 2**bits
    def wrapping_add(self, other):
        return self._wrapping("add", other)

    def wrapping_sub(self, other):
        return self._wrapping("sub", other)

    def wrapping_mul(self, other):
        return self._wrapping("mul", other)

    def wrapping_div(self, other):
        return self._wrapping("div", other)

    def wrapping_rem(self, other):
        return self._wrapping("rem", other)

    def wrapping_neg(self):
        return type(self)(0)._wrapping("sub", self)

    # saturating forms: clamp to MIN / MAX
    def saturating_add(self, other):
        return self._saturating("add", other)

    def saturating_sub(self, other):
        return self._saturating("sub", other)

    def saturating_mul(self, other):
        return self._saturating("mul", other)

    def saturating_div(self, other):
        return self._saturating("div", other)

    def saturating_rem(self, other):
        return self._saturating("rem", other)

    def saturating_neg(self):
        return type(self)(0)._saturating("sub", self)

    # overflowing forms: (wrapped value, did overflow)
    def overflowing_add(self, other):
        return self._overflowing("add", other)

    def overflowing_sub(self, other):
        return self._overflowing("sub", other)

    def overflowing_mul(self, other):
        return self._overflowing("mul", other)

    def overflowing_div(self, other):
        return self._overflowing("div", other)

    def overflowing_rem(self, other):
        return self._overflowing("rem", other)

    def overflowing_neg(self):
        return type(self)(0)._overflowing("sub", self)

    # host operators
    def __add__(self, other):
        return self._strict("add", other)

    def __radd__(self, other):
        return self._coerce(other)._strict("add", self)

    def __sub__(self, other):
        return self._strict("sub", other)

    def __rsub__(self, other):
        return self._coerce(other)._strict("sub", self)

    def __mul__(self, other):
        return self._strict("mul", other)

    def __rmul__(self, other):
        return self._coerce(other)._strict("mul", self)

    def __floordiv__(self, other):
        return self._strict("div", other)

    def __rfloordiv__(self, other):
        return self._coerce(other)._strict("div", self)

    def __mod__(self, other):
        return self._strict("rem", other)

    def __rmod__(self, other):
        return self._coerce(other)._strict("rem", self)

    def __neg__(self):
        return type(self)(0)._strict("sub", self)

    def __pos__(self):
        return self

    def __abs__(self):
        if self.value < 0:
            return -self
        return self

    # bitwise operators never overflow
    def __and__(self, other):
        return type(self)(self.value & self._coerce(other).value)

    __rand__ = __and__

    def __or__(self, other):
        return type(self)(self.value | self._coerce(other).value)

    __ror__ = __or__

    def __xor__(self, other):
        return type(self)(self.value ^ self._coerce(other).value)

    __rxor__ = __xor__

    def __invert__(self):
        return type(self)(wrap_to_bits(~self.value, self.is_signed, self.bits))

    def _shift_amount(self, other) -> int:
        amount = int(other)
        if not 0 <= amount < self.bits:
            raise OverflowError(f"attempt to shift {self.type_id} by {amount}")
        return amount

    def __lshift__(self, other):
        # bits shifted out of the type are discarded
        shifted = self.value << self._shift_amount(other)
        return type(self)(wrap_to_bits(shifted, self.is_signed, self.bits))

    def __rshift__(self, other):
        # arithmetic shift for signed types
        return type(self)(self.value >> self._shift_amount(other))

    def __eq__(self, other):
        if isinstance(other, FixedInt):
            return self.value == other.value
        if isinstance(other, int):
            return self.value == other
        return NotImplemented

    def __lt__(self, other):
        if isinstance(other, FixedInt):
            return self.value < other.value
        if isinstance(other, int):
            return self.value < other
        return NotImplemented

    def __hash__(self):
        return hash(self.value)

    def __bool__(self):
        return self.value != 0

    def __int__(self):
        return self.value

    def __index__(self):
        return self.value

    def __repr__(self):
        return f"{type(self).__name__}({self.value})"

    def __str__(self):
        return str(self.value)


class Int8(FixedInt, bits=8, signed=True):
    __slots__ = ()


class Int16(FixedInt, bits=16, signed=True):
    __slots__ = ()


class Int32(FixedInt, bits=32, signed=True):
    __slots__ = ()


class Int64(FixedInt, bits=64, signed=True):
    __slots__ = ()


class Int128(FixedInt, bits=128, signed=True):
    __slots__ = ()


class Int256(FixedInt, bits=256, signed=True):
    __slots__ = ()


class UInt8(FixedInt, bits=8, signed=False):
    __slots__ = ()


class UInt16(FixedInt, bits=16, signed=False):
    __slots__ = ()


class UInt32(FixedInt, bits=32, signed=False):
    __slots__ = ()


class UInt64(FixedInt, bits=64, signed=False):
    __slots__ = ()


class UInt128(FixedInt, bits=128, signed=False):
    __slots__ = ()


class UInt256(FixedInt, bits=256, signed=False):
    __slots__ = ()


SIGNEDS = (Int8, Int16, Int32, Int64, Int128, Int256)
UNSIGNEDS = (UInt8, UInt16, UInt32, UInt64, UInt128, UInt256)
ALL_TYPES = SIGNEDS + UNSIGNEDS
