import ast as python_ast
import copy
from typing import Optional

from overf.policy import Policy
from overf.settings import DEFAULT_RUNTIME_ALIAS

# the five governed arithmetic operators, by the name of their runtime operation
ARITHMETIC_OPS = {
    python_ast.Add: "add",
    python_ast.Sub: "sub",
    python_ast.Mult: "mul",
    python_ast.FloorDiv: "div",
    python_ast.Mod: "rem",
}


def arithmetic_op(op: python_ast.AST) -> Optional[str]:
    return ARITHMETIC_OPS.get(type(op))


def source_text(node: python_ast.AST) -> str:
    """
    Original source of a node, recorded by the annotating visitor when the
    node was parsed.
    """
    text = getattr(node, "node_source_code", None)
    if text:
        return text
    return python_ast.unparse(node)


def _runtime_call(alias: str, name: str, *args: python_ast.expr) -> python_ast.Call:
    func = python_ast.Attribute(
        value=python_ast.Name(id=alias, ctx=python_ast.Load()), attr=name, ctx=python_ast.Load()
    )
    return python_ast.Call(func=func, args=list(args), keywords=[])


def _emit(
    policy: Policy, op: str, operands: list, text: str, alias: str
) -> Optional[python_ast.expr]:
    if policy.is_identity:
        return None

    call = _runtime_call(alias, f"{policy.method_prefix}_{op}", *operands)

    match policy:
        case Policy.CHECKED:
            return _runtime_call(
                alias, "expect", call, python_ast.Constant(value=op), python_ast.Constant(value=text)
            )
        case Policy.PROPAGATING:
            return _runtime_call(alias, "propagate", call)
        case Policy.OVERFLOWING | Policy.SATURATING:
            return call


def rewrite(
    node: python_ast.expr, policy: Policy, alias: str = DEFAULT_RUNTIME_ALIAS
) -> python_ast.expr:
    """
    Rewrite a single arithmetic expression under an overflow policy.

    Operands are used as they are: the caller is responsible for rewriting
    sub-expressions first. Expressions which are not governed arithmetic
    are returned unchanged (the same object).

    Arguments
    ---------
    node : expr
        Expression node to rewrite.
    policy : Policy
        Active overflow policy.
    alias : str, optional
        Name the runtime module is bound to in the generated code.

    Returns
    -------
    expr
        The replacement expression, or `node` itself.
    """
    if isinstance(node, python_ast.BinOp):
        op = arithmetic_op(node.op)
        if op is None:
            return node
        new_node = _emit(policy, op, [node.left, node.right], source_text(node), alias)

    elif isinstance(node, python_ast.UnaryOp):
        if not isinstance(node.op, python_ast.USub) or _is_numeric_literal(node.operand):
            return node
        new_node = _emit(policy, "neg", [node.operand], source_text(node), alias)

    else:
        return node

    if new_node is None:
        return node
    return python_ast.copy_location(new_node, node)


def rewrite_augassign(
    node: python_ast.AugAssign, policy: Policy, alias: str = DEFAULT_RUNTIME_ALIAS
) -> python_ast.stmt:
    """
    Rewrite `target OP= value` into `target = rewrite(target OP value)`.

    The target is read and written by name, the caller must make sure that
    evaluating it twice has no side effects.
    """
    op = arithmetic_op(node.op)
    if op is None:
        return node

    load = copy.deepcopy(node.target)
    load.ctx = python_ast.Load()

    value = _emit(policy, op, [load, node.value], source_text(node), alias)
    if value is None:
        return node

    python_ast.copy_location(value, node)
    new_node = python_ast.Assign(targets=[node.target], value=value)
    return python_ast.copy_location(new_node, node)


def _is_numeric_literal(node: python_ast.expr) -> bool:
    # `-1` is a negative literal, not a negation which can overflow
    return (
        isinstance(node, python_ast.Constant)
        and isinstance(node.value, (int, float, complex))
        and not isinstance(node.value, bool)
    )
