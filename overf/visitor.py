import ast as python_ast
import contextlib
from dataclasses import dataclass
from typing import Optional

from overf.exceptions import (
    CompilerPanic,
    ExceptionList,
    InvalidInvocation,
    PropagationException,
    tag_exceptions,
)
from overf.policy import INVOCATION_NAMES, Policy
from overf.rewriter import arithmetic_op, rewrite, rewrite_augassign
from overf.settings import Settings
from overf.warnings import RedundantPolicy, overf_warn

# `overf.checked` is recognised as well as a bare `checked`
QUALIFIED_MODULE = "overf"

TMP_PREFIX = "_overf_tmp"

# annotations which can hold the `None` returned by a propagating exit
_ABSENT_NAMES = ("Optional", "Any", "object", "NoneType")

_SCOPE_NODES = (
    python_ast.FunctionDef,
    python_ast.AsyncFunctionDef,
    python_ast.ClassDef,
    python_ast.Lambda,
)


@dataclass
class ReturnScope:
    """
    A scope which propagating arithmetic returns from, or fails to.
    """

    node: Optional[python_ast.AST]
    can_return: bool
    reason: Optional[str] = None
    declaration: Optional[python_ast.AST] = None
    reported: bool = False


class PolicyBlockVisitor(python_ast.NodeTransformer):
    """
    Rewrite the arithmetic of a block of statements under lexically scoped
    overflow policies.

    The active policy is the top of a stack which always holds the identity
    policy at the bottom. Nested invocations (`with checked:` or
    `checked(expr)`) push a policy for their body and pop it on exit; `default`
    pushes the identity policy. Malformed invocations and unsatisfiable
    propagation are collected in `diagnostics`, and the rest of the block is
    still rewritten.
    """

    def __init__(self, settings: Optional[Settings] = None, policy: Optional[Policy] = None):
        if settings is None:
            settings = Settings()
        if policy is None:
            policy = settings.get_policy()

        self._alias = settings.get_runtime_alias()

        self._policies: list[Policy] = [Policy.DEFAULT]
        if not policy.is_identity:
            self._policies.append(policy)
        self._initial_depth = len(self._policies)

        top_level = ReturnScope(
            None, settings.get_function_body(), "at module level, outside of any function"
        )
        self._scopes: list[ReturnScope] = [top_level]

        # set while visiting a statement which needs a propagation guard
        self._propagates = False
        self._tmp_counter = 0

        self.rewrite_count = 0
        self.diagnostics = ExceptionList()

    @property
    def policy(self) -> Policy:
        return self._policies[-1]

    @contextlib.contextmanager
    def _policy_scope(self, policy: Policy, node: python_ast.AST):
        if policy is self.policy:
            msg = f"`{policy}` block has no effect, `{policy}` is already the active policy"
            overf_warn(RedundantPolicy(msg, node))
        self._policies.append(policy)
        try:
            yield
        finally:
            self._policies.pop()

    @contextlib.contextmanager
    def _return_scope(self, scope: ReturnScope):
        self._scopes.append(scope)
        try:
            yield
        finally:
            self._scopes.pop()

    def visit(self, node):
        if not isinstance(node, python_ast.stmt):
            return super().visit(node)

        # every statement gets its own propagation guard
        saved = self._propagates
        self._propagates = False
        try:
            with tag_exceptions(node):
                result = super().visit(node)
            if self._propagates:
                result = self._guard(result)
        finally:
            self._propagates = saved

        return result

    def _visit_body(self, stmts: list) -> list:
        ret = []
        for stmt in stmts:
            result = self.visit(stmt)
            if result is None:
                continue
            if isinstance(result, list):
                ret.extend(result)
            else:
                ret.append(result)
        return ret

    def visit_Module(self, node):
        node.body = self._visit_body(node.body)

        if len(self._policies) != self._initial_depth:
            raise CompilerPanic(
                f"unbalanced policy scopes: {len(self._policies)} != {self._initial_depth}", node
            )

        return node

    # nested invocations

    def _invocation_policy(self, node: python_ast.expr) -> Optional[Policy]:
        if isinstance(node, python_ast.Name):
            name = node.id
        elif (
            isinstance(node, python_ast.Attribute)
            and isinstance(node.value, python_ast.Name)
            and node.value.id == QUALIFIED_MODULE
        ):
            name = node.attr
        else:
            return None
        return INVOCATION_NAMES.get(name)

    def _malformed(self, node, message, hint=None):
        # leave the node as it was written, so later diagnostics still make sense
        self.diagnostics.append(InvalidInvocation(message, node, hint=hint))
        return node

    def visit_With(self, node):
        policies = [self._invocation_policy(item.context_expr) for item in node.items]
        if all(p is None for p in policies):
            return self.generic_visit(node)

        policy = next(p for p in policies if p is not None)
        if len(node.items) != 1:
            return self._malformed(
                node,
                f"`{policy}` block cannot be combined with other context managers",
                hint=f"nest the other context managers inside the `with {policy}:` block",
            )
        if node.items[0].optional_vars is not None:
            return self._malformed(node, f"`{policy}` block cannot be bound with `as`")

        with self._policy_scope(policy, node):
            # the block vanishes, its body is spliced into the enclosing block
            return self._visit_body(node.body)

    def visit_AsyncWith(self, node):
        for item in node.items:
            policy = self._invocation_policy(item.context_expr)
            if policy is not None:
                return self._malformed(
                    node, f"`{policy}` block cannot be entered with `async with`"
                )
        return self.generic_visit(node)

    def visit_Call(self, node):
        policy = self._invocation_policy(node.func)
        if policy is None:
            return self.generic_visit(node)

        if (
            len(node.args) != 1
            or node.keywords
            or isinstance(node.args[0], python_ast.Starred)
        ):
            return self._malformed(
                node, f"`{policy}(...)` takes exactly one positional expression"
            )

        with self._policy_scope(policy, node):
            return self.visit(node.args[0])

    # arithmetic

    def _remember_source(self, node):
        # checked panics report the source as written, record it before the
        # operands are rewritten
        if self.policy is Policy.CHECKED and not getattr(node, "node_source_code", None):
            node.node_source_code = python_ast.unparse(node)

    def _rewritten(self, node):
        self.rewrite_count += 1
        if self.policy is Policy.PROPAGATING:
            self._require_return(node)

    def visit_BinOp(self, node):
        self._remember_source(node)
        self.generic_visit(node)

        new_node = rewrite(node, self.policy, self._alias)
        if new_node is not node:
            self._rewritten(node)
        return new_node

    visit_UnaryOp = visit_BinOp

    def visit_match_case(self, node):
        # patterns are literals, `case 1 + 2j:` is not arithmetic
        if node.guard is not None:
            node.guard = self.visit(node.guard)
        node.body = self._visit_body(node.body)
        return node

    def visit_AugAssign(self, node):
        self._remember_source(node)
        self.generic_visit(node)

        if self.policy.is_identity or arithmetic_op(node.op) is None:
            return node

        hoisted = self._hoist_target(node)
        new_node = rewrite_augassign(node, self.policy, self._alias)
        self._rewritten(node)

        if hoisted:
            return hoisted + [new_node]
        return new_node

    def _hoist_target(self, node: python_ast.AugAssign) -> list:
        """
        Move the container and index of an augmented assignment target into
        temporaries, so that `t OP= v` -> `t = t OP v` evaluates them once.
        """
        assigns: list = []
        target = node.target
        if isinstance(target, (python_ast.Subscript, python_ast.Attribute)):
            if not _is_simple(target.value):
                target.value = self._hoist(target.value, assigns)
        if isinstance(target, python_ast.Subscript):
            target.slice = self._hoist_index(target.slice, assigns)
        return assigns

    def _hoist_index(self, node, assigns):
        if isinstance(node, python_ast.Slice):
            for field in ("lower", "upper", "step"):
                part = getattr(node, field)
                if part is not None and not _is_simple(part):
                    setattr(node, field, self._hoist(part, assigns))
            return node
        if isinstance(node, python_ast.Tuple):
            node.elts = [self._hoist_index(elt, assigns) for elt in node.elts]
            return node
        if _is_simple(node):
            return node
        return self._hoist(node, assigns)

    def _hoist(self, node, assigns):
        name = f"{TMP_PREFIX}{self._tmp_counter}"
        self._tmp_counter += 1

        store = python_ast.Name(id=name, ctx=python_ast.Store())
        assign = python_ast.Assign(targets=[store], value=node)
        assigns.append(python_ast.copy_location(assign, node))

        return python_ast.copy_location(python_ast.Name(id=name, ctx=python_ast.Load()), node)

    # propagation

    def _require_return(self, node):
        scope = self._scopes[-1]
        if scope.can_return:
            self._propagates = True
            return

        # one diagnostic per offending scope
        if scope.reported:
            return
        scope.reported = True

        declaration = None
        if scope.declaration is not None:
            declaration = ("return type declared here:", scope.declaration)
        self.diagnostics.append(
            PropagationException(
                f"cannot propagate overflow {scope.reason}",
                node,
                declaration,
                hint="propagating arithmetic must run in a function which may return None",
            )
        )

    def _guard(self, result):
        """
        Wrap statement(s) in a guard which returns from the enclosing function
        when a propagating operation overflows.
        """
        body = result if isinstance(result, list) else [result]

        exc_type = python_ast.Attribute(
            value=python_ast.Name(id=self._alias, ctx=python_ast.Load()),
            attr="Propagate",
            ctx=python_ast.Load(),
        )
        handler = python_ast.ExceptHandler(
            type=exc_type, name=None, body=[python_ast.Return(value=None)]
        )
        guard = python_ast.Try(body=body, handlers=[handler], orelse=[], finalbody=[])
        return python_ast.copy_location(guard, body[0])

    # scopes

    def visit_FunctionDef(self, node):
        # decorators and defaults are evaluated in the enclosing scope
        node.decorator_list = [self.visit(d) for d in node.decorator_list]
        node.args = self.visit(node.args)

        with self._return_scope(_function_scope(node)):
            node.body = self._visit_body(node.body)
        return node

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_Lambda(self, node):
        node.args = self.visit(node.args)

        with self._return_scope(ReturnScope(node, False, "out of a lambda")):
            node.body = self.visit(node.body)
        return node

    def visit_GeneratorExp(self, node):
        # only the outermost iterable is evaluated here, the rest runs later
        # in whichever statement consumes the generator
        outermost = node.generators[0]
        outermost.iter = self.visit(outermost.iter)

        scope = ReturnScope(node, False, "out of a generator expression")
        with self._return_scope(scope):
            node.elt = self.visit(node.elt)
            for idx, comp in enumerate(node.generators):
                if idx > 0:
                    comp.iter = self.visit(comp.iter)
                comp.ifs = [self.visit(cond) for cond in comp.ifs]
        return node

    def visit_ClassDef(self, node):
        node.decorator_list = [self.visit(d) for d in node.decorator_list]
        node.bases = [self.visit(b) for b in node.bases]
        node.keywords = [self.visit(k) for k in node.keywords]

        with self._return_scope(ReturnScope(node, False, "from a class body")):
            node.body = self._visit_body(node.body)
        return node


def _is_simple(node) -> bool:
    return isinstance(node, (python_ast.Name, python_ast.Constant))


def _function_scope(node) -> ReturnScope:
    if _is_generator(node) or _can_represent_absence(node.returns):
        return ReturnScope(node, True)

    reason = f"from function `{node.name}`, its return type cannot represent an absent value"
    return ReturnScope(node, False, reason, declaration=node.returns)


def _is_generator(node) -> bool:
    # a bare `return` ends a generator, whatever it yields
    todo = list(node.body)
    while todo:
        n = todo.pop()
        if isinstance(n, (python_ast.Yield, python_ast.YieldFrom)):
            return True
        if isinstance(n, _SCOPE_NODES):
            continue
        todo.extend(python_ast.iter_child_nodes(n))
    return False


def _annotation_name(node) -> Optional[str]:
    if isinstance(node, python_ast.Name):
        return node.id
    if isinstance(node, python_ast.Attribute):
        return node.attr
    return None


def _can_represent_absence(annotation) -> bool:
    """
    Check if a return annotation admits `None`, e.g. `Optional[int]`,
    `int | None` or no annotation at all.
    """
    if annotation is None:
        return True

    if isinstance(annotation, python_ast.Constant):
        if annotation.value is None:
            return True
        if isinstance(annotation.value, str):
            # forward reference, e.g. `-> "Optional[Foo]"`
            try:
                parsed = python_ast.parse(annotation.value, mode="eval").body
            except SyntaxError:
                return False
            return _can_represent_absence(parsed)
        return False

    if isinstance(annotation, python_ast.BinOp) and isinstance(annotation.op, python_ast.BitOr):
        return _can_represent_absence(annotation.left) or _can_represent_absence(
            annotation.right
        )

    if isinstance(annotation, python_ast.Subscript):
        name = _annotation_name(annotation.value)
        if name == "Optional":
            return True
        if name == "Union":
            members = annotation.slice
            if isinstance(members, python_ast.Tuple):
                return any(_can_represent_absence(m) for m in members.elts)
            return _can_represent_absence(members)
        return False

    return _annotation_name(annotation) in _ABSENT_NAMES
