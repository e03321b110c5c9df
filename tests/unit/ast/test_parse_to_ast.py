import pytest

from overf.ast import parse_to_ast
from overf.exceptions import ParserException, SyntaxException
from overf.settings import Settings


def test_annotations():
    code = "def foo(a):\n    return a  +  1\n"
    module = parse_to_ast(code, module_path="foo.py")

    binop = module.body[0].body[0].value
    assert binop.node_source_code == "a  +  1"
    assert binop.full_source_code == code
    assert binop.module_path == "foo.py"
    assert binop.function_name == "foo"
    assert module.body[0].function_name is None


def test_operator_singletons_copied():
    module = parse_to_ast("a + b\nc + d\n")
    first, second = (stmt.value.op for stmt in module.body)
    assert first is not second


def test_settings_and_path():
    module = parse_to_ast("# pragma function-body\nx = 1\n", module_path="x.py")
    assert module.settings == Settings(function_body=True)
    assert module.path == "x.py"


def test_syntax_error():
    code = "x = 1\ny = (2 +\n"
    with pytest.raises(SyntaxException) as excinfo:
        parse_to_ast(code, module_path="bad.py")
    exc = excinfo.value
    assert exc.lineno == 2
    assert 'file "bad.py:2"' in str(exc)


def test_syntax_error_zero_based_column():
    with pytest.raises(SyntaxException) as excinfo:
        parse_to_ast("x = = 1\n")
    item = excinfo.value.annotations[0]
    assert item.lineno == 1
    # python reports 1-based offsets
    assert item.col_offset == 4


def test_null_bytes():
    with pytest.raises(ParserException, match="null bytes"):
        parse_to_ast("x = 1\x00")
