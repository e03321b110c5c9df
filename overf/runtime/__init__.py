"""
Runtime support for code rewritten by overf.

Rewritten blocks import this module as `__overf__` and call into it, e.g.
`a + b` under the checked policy becomes
`__overf__.expect(__overf__.checked_add(a, b), 'add', 'a + b')`.
"""
from overf.runtime.exceptions import OverflowPanic, Propagate
from overf.runtime.ints import (
    ALL_TYPES,
    SIGNEDS,
    UNSIGNEDS,
    FixedInt,
    Int8,
    Int16,
    Int32,
    Int64,
    Int128,
    Int256,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    UInt128,
    UInt256,
)
from overf.runtime.ops import (
    checked_add,
    checked_div,
    checked_mul,
    checked_neg,
    checked_rem,
    checked_sub,
    expect,
    propagate,
    saturating_add,
    saturating_div,
    saturating_mul,
    saturating_neg,
    saturating_rem,
    saturating_sub,
    wrapping_add,
    wrapping_div,
    wrapping_mul,
    wrapping_neg,
    wrapping_rem,
    wrapping_sub,
)
