import enum
from typing import Optional

from overf.utils import StringEnum


class Policy(StringEnum):
    """
    Overflow handling discipline for a region of code.

    DEFAULT is the identity policy: arithmetic keeps the host semantics and
    nothing is rewritten. It always sits at the bottom of the policy stack.
    """

    DEFAULT = enum.auto()
    CHECKED = enum.auto()
    OVERFLOWING = enum.auto()
    SATURATING = enum.auto()
    PROPAGATING = enum.auto()

    @classmethod
    def from_string(cls, val: str) -> "Policy":
        match val:
            case "default" | "reset":
                return cls.DEFAULT
            case "checked":
                return cls.CHECKED
            case "overflowing" | "wrapping":
                return cls.OVERFLOWING
            case "saturating":
                return cls.SATURATING
            case "propagating":
                return cls.PROPAGATING
        raise ValueError(f"unrecognized overflow policy: {val}")

    @property
    def method_prefix(self) -> Optional[str]:
        """
        Prefix of the runtime operation emitted for this policy, e.g.
        `checked` for `checked_add`. None for the identity policy.
        """
        match self:
            case Policy.CHECKED | Policy.PROPAGATING:
                return "checked"
            case Policy.OVERFLOWING:
                return "wrapping"
            case Policy.SATURATING:
                return "saturating"
            case Policy.DEFAULT:
                return None

    @property
    def is_identity(self) -> bool:
        return self is Policy.DEFAULT


# names which open a nested policy scope inside a transformed block
INVOCATION_NAMES = {p.value: p for p in Policy}
