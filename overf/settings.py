import dataclasses
import os
from dataclasses import dataclass
from typing import Optional

from overf.policy import Policy

OVERF_ERROR_CONTEXT_LINES = int(os.environ.get("OVERF_ERROR_CONTEXT_LINES", "1"))
OVERF_ERROR_LINE_NUMBERS = os.environ.get("OVERF_ERROR_LINE_NUMBERS", "1") == "1"

OVERF_TRACEBACK_LIMIT: Optional[int]

_tb_limit_str = os.environ.get("OVERF_TRACEBACK_LIMIT")
if _tb_limit_str is not None:
    OVERF_TRACEBACK_LIMIT = int(_tb_limit_str)
else:
    OVERF_TRACEBACK_LIMIT = None


DEFAULT_RUNTIME_ALIAS = "__overf__"
DEFAULT_EMIT_IMPORT = True
DEFAULT_FUNCTION_BODY = False


@dataclass
class Settings:
    overf_version: Optional[str] = None
    policy: Optional[Policy] = None
    function_body: Optional[bool] = None
    runtime_alias: Optional[str] = None
    emit_import: Optional[bool] = None

    def __post_init__(self):
        # sanity check inputs
        if self.policy is not None:
            assert isinstance(self.policy, Policy)
        if self.function_body is not None:
            assert isinstance(self.function_body, bool)
        if self.runtime_alias is not None:
            assert self.runtime_alias.isidentifier(), self.runtime_alias
        if self.emit_import is not None:
            assert isinstance(self.emit_import, bool)

    def get_policy(self) -> Policy:
        if self.policy is None:
            return Policy.DEFAULT
        return self.policy

    def get_function_body(self) -> bool:
        if self.function_body is None:
            return DEFAULT_FUNCTION_BODY
        return self.function_body

    def get_runtime_alias(self) -> str:
        if self.runtime_alias is None:
            return DEFAULT_RUNTIME_ALIAS
        return self.runtime_alias

    def get_emit_import(self) -> bool:
        if self.emit_import is None:
            return DEFAULT_EMIT_IMPORT
        return self.emit_import

    def as_dict(self):
        ret = dataclasses.asdict(self)
        # overf_version is not an input setting, it can only come from
        # source code pragma.
        ret.pop("overf_version", None)
        ret = {k: v for (k, v) in ret.items() if v is not None}
        if "policy" in ret:
            ret["policy"] = str(ret["policy"])
        return ret

    @classmethod
    def from_dict(cls, data):
        data = data.copy()
        if "policy" in data:
            data["policy"] = Policy.from_string(data["policy"])
        return cls(**data)


def merge_settings(
    one: Settings, two: Settings, lhs_source="expansion settings", rhs_source="source pragma"
) -> Settings:
    def _merge_one(lhs, rhs, helpstr):
        if lhs is not None and rhs is not None and lhs != rhs:
            # aesthetics, conjugate the verbs per english rules
            s1 = "" if lhs_source.endswith("s") else "s"
            s2 = "" if rhs_source.endswith("s") else "s"
            raise ValueError(
                f"settings conflict!\n\n  {lhs_source}: {one}\n  {rhs_source}: {two}\n\n"
                f"({lhs_source} indicate{s1} {helpstr} {lhs}, but {rhs_source} indicate{s2} {rhs}.)"
            )
        return lhs if rhs is None else rhs

    ret = Settings()
    for field in dataclasses.fields(ret):
        if field.name == "overf_version":
            val = getattr(one, field.name) or getattr(two, field.name)
        else:
            pretty_name = field.name.replace("_", "-")  # e.g. function_body -> function-body
            val = _merge_one(getattr(one, field.name), getattr(two, field.name), pretty_name)
        setattr(ret, field.name, val)

    return ret
