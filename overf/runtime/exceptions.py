"""
Exceptions raised by code generated by overf.

These describe the behavior of the generated program, they are never raised
by the expander itself.
"""


class OverflowPanic(ArithmeticError):
    """Checked arithmetic overflowed (or divided by zero), execution aborts."""


class Propagate(Exception):
    """
    Signal raised by propagating arithmetic on overflow.

    The statement guard emitted around propagating arithmetic catches it and
    returns from the enclosing function.
    """
