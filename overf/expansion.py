import ast as python_ast
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from overf.ast import parse_to_ast
from overf.exceptions import ExceptionList
from overf.policy import Policy
from overf.settings import Settings, merge_settings
from overf.visitor import PolicyBlockVisitor

RUNTIME_MODULE = "overf.runtime"


@dataclass
class Expansion:
    """
    Result of expanding one block of source code.

    Attributes
    ----------
    source : str
        The rewritten source code.
    tree : ast.Module
        The rewritten tree.
    diagnostics : ExceptionList
        Deferred expansion errors (malformed invocations, unsatisfiable
        propagation). The rest of the block is still rewritten.
    rewrites : int
        Number of arithmetic operations which were rewritten.
    """

    source: str
    tree: python_ast.Module
    diagnostics: ExceptionList = field(default_factory=ExceptionList)
    rewrites: int = 0


def expand(
    source_code: str,
    policy: Optional[Policy] = None,
    settings: Optional[Settings] = None,
    module_path: Optional[str] = None,
) -> Expansion:
    """
    Rewrite the arithmetic of a block of statements under an overflow policy.

    Arguments
    ---------
    source_code : str
        Python statements to rewrite.
    policy : Policy, optional
        Initial policy of the block. Takes precedence over `settings` and
        over a `# pragma overflow` directive.
    settings : Settings, optional
        Expansion settings. Conflicting source pragmas raise a ValueError.
    module_path : str, optional
        Path of the source, used in error messages.

    Returns
    -------
    Expansion
    """
    py_ast = parse_to_ast(source_code, module_path=module_path)

    if settings is None:
        settings = Settings()
    settings = merge_settings(settings, py_ast.settings)
    if policy is not None:
        settings.policy = policy

    visitor = PolicyBlockVisitor(settings)
    py_ast = visitor.visit(py_ast)

    if visitor.rewrite_count > 0 and settings.get_emit_import():
        _insert_runtime_import(py_ast, settings.get_runtime_alias())

    python_ast.fix_missing_locations(py_ast)
    return Expansion(
        source=python_ast.unparse(py_ast),
        tree=py_ast,
        diagnostics=visitor.diagnostics,
        rewrites=visitor.rewrite_count,
    )


def _insert_runtime_import(module: python_ast.Module, alias: str) -> None:
    # after the docstring and `from __future__` imports, which must come first
    idx = 0
    body = module.body
    if body and _is_docstring(body[0]):
        idx = 1
    while idx < len(body) and _is_future_import(body[idx]):
        idx += 1

    node = python_ast.Import(names=[python_ast.alias(name=RUNTIME_MODULE, asname=alias)])
    body.insert(idx, node)


def _is_docstring(node) -> bool:
    return (
        isinstance(node, python_ast.Expr)
        and isinstance(node.value, python_ast.Constant)
        and isinstance(node.value.value, str)
    )


def _is_future_import(node) -> bool:
    return isinstance(node, python_ast.ImportFrom) and node.module == "__future__"


def _expand_strict(source_code: str, policy: Policy, settings: Optional[Settings]) -> str:
    expansion = expand(source_code, policy=policy, settings=settings)
    expansion.diagnostics.raise_if_not_empty()
    return expansion.source


def checked(source_code: str, settings: Optional[Settings] = None) -> str:
    """
    Rewrite `source_code` so that arithmetic overflow panics.
    """
    return _expand_strict(source_code, Policy.CHECKED, settings)


def overflowing(source_code: str, settings: Optional[Settings] = None) -> str:
    """
    Rewrite `source_code` so that arithmetic wraps around on overflow.
    """
    return _expand_strict(source_code, Policy.OVERFLOWING, settings)


def saturating(source_code: str, settings: Optional[Settings] = None) -> str:
    """
    Rewrite `source_code` so that arithmetic clamps to the bounds of its type.
    """
    return _expand_strict(source_code, Policy.SATURATING, settings)


def propagating(source_code: str, settings: Optional[Settings] = None) -> str:
    """
    Rewrite `source_code` so that an overflow returns None from the
    enclosing function.
    """
    return _expand_strict(source_code, Policy.PROPAGATING, settings)


def default(source_code: str, settings: Optional[Settings] = None) -> str:
    """
    Reset entry point. At top scope there is no enclosing policy to opt out
    of, so the source is returned unchanged once it is known to parse and
    its pragmas agree with `settings`.
    """
    py_ast = parse_to_ast(source_code)
    if settings is not None:
        merge_settings(settings, py_ast.settings)
    return source_code


def expand_file(
    path: str | Path, policy: Optional[Policy] = None, settings: Optional[Settings] = None
) -> Expansion:
    """
    Read and expand a source file. Source pragmas decide the policy unless
    one is given.
    """
    path = Path(path)
    with path.open() as f:
        source_code = f.read()
    return expand(source_code, policy=policy, settings=settings, module_path=str(path))
