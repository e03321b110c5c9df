import ast as python_ast
import copy
from typing import Optional

import asttokens

from overf.ast.pre_parser import PreParser
from overf.exceptions import ParserException, SyntaxException

PYTHON_AST_SINGLETONS = (
    python_ast.cmpop,
    python_ast.operator,
    python_ast.unaryop,
    python_ast.boolop,
    python_ast.expr_context,
)

FUNCTION_NODES = (python_ast.FunctionDef, python_ast.AsyncFunctionDef)


def parse_to_ast(source_code: str, module_path: Optional[str] = None) -> python_ast.Module:
    try:
        return _parse_to_ast(source_code, module_path)
    except SyntaxException as e:
        # syntax exceptions annotate a bare location, add the path to it
        for item in e.annotations:
            item.module_path = module_path
        raise e


def _parse_to_ast(source_code: str, module_path: Optional[str] = None) -> python_ast.Module:
    """
    Parses a block of python statements and annotates the resulting AST.

    Parameters
    ----------
    source_code: str
        The block of python statements to parse.
    module_path: str, optional
        The path of the source code, used in error messages.

    Returns
    -------
    Module
        Annotated python AST. The `settings` member holds the settings read
        from source pragmas.
    """
    if "\x00" in source_code:
        raise ParserException("No null bytes (\\x00) allowed in the source code.")

    try:
        py_ast = python_ast.parse(source_code)
    except SyntaxError as e:
        offset = e.offset
        if offset is not None:
            # SyntaxError offset is 1-based, not 0-based (see:
            # https://docs.python.org/3/library/exceptions.html#SyntaxError.offset)
            offset -= 1

        raise SyntaxException(e.msg, source_code, e.lineno, offset) from None

    pre_parser = PreParser()
    pre_parser.parse(source_code)

    annotate_python_ast(py_ast, source_code, module_path=module_path)

    py_ast.settings = pre_parser.settings
    py_ast.path = module_path

    return py_ast


def annotate_python_ast(
    parsed_ast: python_ast.Module, source_code: str, module_path: Optional[str] = None
) -> python_ast.AST:
    """
    Annotate a Python AST with the source information used by the visitor
    and by error messages.

    Parameters
    ----------
    parsed_ast : AST
        The AST to be annotated.
    source_code: str
        The original source code

    Returns
    -------
        The annotated AST.
    """
    tokens = asttokens.ASTTokens(source_code, tree=parsed_ast)
    visitor = AnnotatingVisitor(source_code, tokens, module_path=module_path)
    visitor.visit(parsed_ast)

    return parsed_ast


class AnnotatingVisitor(python_ast.NodeTransformer):
    _source_code: str
    _tokens: asttokens.ASTTokens
    _parents: list[python_ast.AST]

    def __init__(
        self, source_code: str, tokens: asttokens.ASTTokens, module_path: Optional[str] = None
    ):
        self._source_code = source_code
        self._tokens = tokens
        self._module_path = module_path
        self._parents = []

    def _function_name(self) -> Optional[str]:
        for parent in reversed(self._parents):
            if isinstance(parent, FUNCTION_NODES):
                return parent.name
        return None

    def generic_visit(self, node):
        """
        Adds source information to all python ast nodes and replaces python
        ast nodes that are singletons with a copy so that the information
        will be unique.
        """
        if isinstance(node, PYTHON_AST_SINGLETONS):
            # for performance reasons, these AST nodes are represented as
            # singletons in the C parser. however, since we want to add
            # different source annotations for each operator, we create
            # a copy here.
            node = copy.copy(node)

        # decorate every node with the original source code to allow
        # pretty-printing errors
        node.full_source_code = self._source_code
        node.module_path = self._module_path
        node.function_name = self._function_name()

        # operators and contexts carry no position, `get_text` yields ""
        node.node_source_code = self._tokens.get_text(node)

        # keep track of the current path thru the AST
        self._parents.append(node)
        try:
            node = super().generic_visit(node)
        finally:
            self._parents.pop()

        return node
