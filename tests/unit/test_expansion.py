import pytest

import overf
from overf.exceptions import InvalidInvocation, PropagationException, SyntaxException
from overf.expansion import expand, expand_file
from overf.policy import Policy
from overf.settings import Settings

SOURCE = "def foo(a, b):\n    return a * b\n"


@pytest.mark.parametrize(
    "entry,expected",
    [
        (overf.checked, "__overf__.expect(__overf__.checked_mul(a, b), 'mul', 'a * b')"),
        (overf.overflowing, "__overf__.wrapping_mul(a, b)"),
        (overf.saturating, "__overf__.saturating_mul(a, b)"),
    ],
)
def test_entry_points(entry, expected):
    source = entry(SOURCE)
    assert source.startswith("import overf.runtime as __overf__\n")
    assert f"return {expected}" in source


def test_propagating_entry_point():
    source = overf.propagating(SOURCE)
    assert "except __overf__.Propagate:" in source


def test_default_entry_point():
    code = "with checked:\n    x = a + b\n"
    assert overf.default(code) is code


def test_default_entry_point_syntax_error():
    with pytest.raises(SyntaxException):
        overf.default("x = (\n")


def test_default_entry_point_settings():
    code = "# pragma runtime-alias rt\nx = a + b\n"
    assert overf.default(code, Settings(runtime_alias="rt")) is code
    with pytest.raises(ValueError, match="settings conflict"):
        overf.default(code, Settings(runtime_alias="other"))


def test_comments_and_pragmas_not_preserved():
    code = "# pragma overflow saturating\nx = a + b  # total\n"
    source = expand(code).source
    assert "#" not in source
    # the policy has already been applied, expanding again changes nothing
    assert expand(source).source == source


def test_entry_point_raises_diagnostics():
    with pytest.raises(InvalidInvocation):
        overf.checked("x = overflowing()\n")
    with pytest.raises(PropagationException):
        overf.propagating("x = a + b\n")


def test_entry_point_settings():
    settings = Settings(function_body=True, emit_import=False)
    source = overf.propagating("x = a + b\n", settings)
    assert source.startswith("try:")


def test_entry_point_syntax_error():
    with pytest.raises(SyntaxException):
        overf.checked("def foo(:\n    pass\n")


def test_expand_returns_diagnostics():
    expansion = expand("x = checked()\ny = a + b\n", Policy.OVERFLOWING)
    assert len(expansion.diagnostics) == 1
    assert expansion.rewrites == 1
    assert expansion.tree.body[0].names[0].asname == "__overf__"


def test_expand_without_policy_is_identity():
    expansion = expand("y = a + b\n")
    assert expansion.source == "y = a + b"
    assert expansion.rewrites == 0


def test_expand_file(make_file):
    path = make_file("mod.py", "# pragma overflow wrapping\n" + SOURCE)
    expansion = expand_file(path)
    assert "__overf__.wrapping_mul(a, b)" in expansion.source

    expansion = expand_file(str(path), policy=Policy.SATURATING)
    assert "__overf__.saturating_mul(a, b)" in expansion.source


def test_expand_file_path_in_diagnostics(make_file):
    path = make_file("mod.py", "x = checked(1, 2)\n")
    expansion = expand_file(path)
    assert f'file "{path}:1"' in str(expansion.diagnostics[0])
