import sys
import warnings

import pytest

from overf.cli.overf_expand import _parse_args, expand_files
from overf.exceptions import InvalidInvocation, PragmaException, SyntaxException
from overf.policy import Policy
from overf.settings import Settings
from overf.warnings import RedundantPolicy

SOURCE = """
def foo(a, b):
    return a + b
"""


@pytest.fixture(autouse=True)
def restore_globals(monkeypatch):
    # the cli sets the traceback limit and the warnings filters
    monkeypatch.setattr(sys, "tracebacklimit", 1000, raising=False)
    with warnings.catch_warnings():
        yield


def test_expand_files(make_file):
    path = make_file("foo.py", SOURCE)
    ret = expand_files([str(path)], Policy.OVERFLOWING)

    assert list(ret) == [path]
    expansion = ret[path]
    assert expansion.rewrites == 1
    assert "return __overf__.wrapping_add(a, b)" in expansion.source


def test_expand_files_deduplicates(make_file):
    path = make_file("foo.py", SOURCE)
    ret = expand_files([str(path), str(path)], Policy.CHECKED)
    assert len(ret) == 1


def test_expand_files_pragma_policy(make_file):
    path = make_file("foo.py", "# pragma overflow saturating\n" + SOURCE)
    ret = expand_files([str(path)])
    assert "__overf__.saturating_add(a, b)" in ret[path].source


def test_expand_files_settings(make_file):
    path = make_file("foo.py", SOURCE)
    settings = Settings(runtime_alias="rt", emit_import=False)
    ret = expand_files([str(path)], Policy.SATURATING, settings)
    assert "import" not in ret[path].source
    assert "rt.saturating_add(a, b)" in ret[path].source


def test_expand_files_conflicting_pragma(make_file):
    path = make_file("foo.py", "# pragma overflow saturating\n" + SOURCE)
    with pytest.raises(ValueError, match="settings conflict"):
        expand_files([str(path)], settings=Settings(policy=Policy.CHECKED))


def test_expand_files_diagnostics(make_file, capsys):
    path = make_file("bad.py", "x = checked(a, b)\n")
    with pytest.raises(InvalidInvocation, match=r'file ".*bad\.py:1"'):
        expand_files([str(path)])
    assert f"Error expanding: {path}" in capsys.readouterr().out


def test_expand_files_syntax_error(make_file):
    path = make_file("bad.py", "def foo(:\n    pass\n")
    with pytest.raises(SyntaxException) as excinfo:
        expand_files([str(path)])
    assert excinfo.value.lineno == 1
    assert "bad.py" in str(excinfo.value)


def test_cli_prints_source(make_file, capsys):
    path = make_file("foo.py", SOURCE)
    _parse_args([str(path), "-p", "wrapping"])

    out = capsys.readouterr().out
    assert out.startswith("import overf.runtime as __overf__\n")
    assert "__overf__.wrapping_add(a, b)" in out


def test_cli_multiple_files(make_file, capsys):
    foo = make_file("foo.py", SOURCE)
    bar = make_file("bar.py", "x = y - 1\n")
    _parse_args([str(foo), str(bar), "--policy", "saturating"])

    out = capsys.readouterr().out
    assert f"# {foo}\n" in out
    assert f"# {bar}\n" in out
    assert "x = __overf__.saturating_sub(y, 1)" in out


def test_cli_output_path(make_file, tmp_path, capsys):
    path = make_file("foo.py", SOURCE)
    out_path = tmp_path / "out.py"
    _parse_args([str(path), "-p", "checked", "-o", str(out_path), "--no-runtime-import"])

    assert capsys.readouterr().out == ""
    contents = out_path.read_text()
    assert "import" not in contents
    assert "__overf__.checked_add(a, b)" in contents


def test_cli_runtime_alias(make_file, capsys):
    path = make_file("foo.py", SOURCE)
    _parse_args([str(path), "-p", "overflowing", "--runtime-alias", "_rt"])
    out = capsys.readouterr().out
    assert "import overf.runtime as _rt" in out
    assert "_rt.wrapping_add(a, b)" in out


def test_cli_invalid_runtime_alias(make_file):
    path = make_file("foo.py", SOURCE)
    with pytest.raises(ValueError, match="Invalid runtime alias"):
        _parse_args([str(path), "--runtime-alias", "not-an-identifier"])


def test_cli_function_body(make_file, capsys):
    path = make_file("body.py", "x = a + b\n")
    _parse_args([str(path), "-p", "propagating", "--function-body"])
    out = capsys.readouterr().out
    assert "except __overf__.Propagate:\n    return" in out


def test_cli_invalid_policy(make_file):
    path = make_file("foo.py", SOURCE)
    with pytest.raises(SystemExit):
        _parse_args([str(path), "-p", "unchecked"])


def test_cli_bad_pragma(make_file):
    path = make_file("foo.py", "# pragma overflow sometimes\n" + SOURCE)
    with pytest.raises(PragmaException, match="Invalid overflow policy `sometimes`"):
        _parse_args([str(path)])


def test_cli_warnings_as_errors(make_file):
    path = make_file("foo.py", "with default:\n    x = 1\n")
    with pytest.raises(RedundantPolicy):
        _parse_args([str(path), "-W", "error"])


def test_cli_warnings_silenced(make_file, recwarn, capsys):
    path = make_file("foo.py", "with default:\n    x = 1\n")
    _parse_args([str(path), "-W", "none"])
    assert not [w for w in recwarn if issubclass(w.category, RedundantPolicy)]
    assert capsys.readouterr().out == "x = 1\n"


def test_cli_traceback_limit(make_file):
    path = make_file("foo.py", SOURCE)
    _parse_args([str(path), "--traceback-limit", "5"])
    assert sys.tracebacklimit == 5


def test_cli_version(capsys):
    import overf

    with pytest.raises(SystemExit):
        _parse_args(["--version"])
    assert overf.__version__ in capsys.readouterr().out


def test_cli_relative_path(make_file, chdir_tmp_path, capsys):
    make_file("pkg/mod.py", "x = checked(1, 2)\n")
    with pytest.raises(InvalidInvocation, match=r'file "pkg/mod\.py:1"'):
        _parse_args(["pkg/mod.py"])
    assert "Error expanding: pkg/mod.py" in capsys.readouterr().out
