import pytest

from overf.ast.pre_parser import PreParser, validate_version_pragma
from overf.exceptions import PragmaException, SyntaxException, VersionException
from overf.expansion import expand
from overf.policy import Policy
from overf.settings import Settings

SRC_LINE = (1, 0)  # Dummy source line
OVERF_VERSION = "0.1.1"
PRERELEASE_OVERF_VERSION = "0.1.1b7"


@pytest.fixture
def mock_version(monkeypatch):
    def set_version(version):
        monkeypatch.setattr("overf.__version__", version)

    return set_version


valid_versions = ["0.1.1", ">0.0.1", "^0.1.0", "<=1.0.0,>=0.1.0", "~=0.1.0"]
invalid_versions = [
    "0.1.0",
    ">1.0.0",
    "^0.2.0",
    "<=0.0.1 >=1.1.1",
    "1.0.0 - 2.0.0",
    "~1.0.0",
    "0.2",
    "1.x",
    "0.2.0 || 0.1.3",
    "abc",
]


@pytest.mark.parametrize("file_version", valid_versions)
def test_valid_version_pragma(file_version, mock_version):
    mock_version(OVERF_VERSION)
    validate_version_pragma(file_version, (file_version, *SRC_LINE))


@pytest.mark.parametrize("file_version", invalid_versions)
def test_invalid_version_pragma(file_version, mock_version):
    mock_version(OVERF_VERSION)
    with pytest.raises(VersionException):
        validate_version_pragma(file_version, (file_version, *SRC_LINE))


@pytest.mark.parametrize("file_version", ["<0.1.1b9", "0.1.1b7", ">0.1.1b2"])
def test_prerelease_version_pragma(file_version, mock_version):
    mock_version(PRERELEASE_OVERF_VERSION)
    validate_version_pragma(file_version, (file_version, *SRC_LINE))


def test_empty_version_pragma(mock_version):
    mock_version(OVERF_VERSION)
    with pytest.raises(VersionException, match="cannot be empty"):
        validate_version_pragma("", ("", *SRC_LINE))


def test_invalid_version_contains_file(mock_version):
    mock_version(OVERF_VERSION)
    with pytest.raises(VersionException, match=r'file "mock\.py:\d+"'):
        expand("# pragma version ^0.3.10\nx = 1\n", module_path="mock.py")


pragma_examples = [
    ("", Settings()),
    ("# pragma overflow checked", Settings(policy=Policy.CHECKED)),
    ("# pragma overflow wrapping", Settings(policy=Policy.OVERFLOWING)),
    ("# pragma overflow reset", Settings(policy=Policy.DEFAULT)),
    ("# pragma function-body", Settings(function_body=True)),
    ("# pragma runtime-alias _rt", Settings(runtime_alias="_rt")),
    (
        """
# pragma overflow propagating
# pragma function-body
x = 1  # pragma runtime-alias rt
        """,
        Settings(policy=Policy.PROPAGATING, function_body=True, runtime_alias="rt"),
    ),
    # not pragmas
    ("# pragmatic overflow checked", Settings()),
    ("x = '# pragma overflow checked'", Settings()),
]


@pytest.mark.parametrize("code, expected", pragma_examples)
def test_parse_pragmas(code, expected, mock_version):
    mock_version(OVERF_VERSION)
    pre_parser = PreParser()
    pre_parser.parse(code)
    assert pre_parser.settings == expected


def test_version_pragma_setting(mock_version):
    mock_version(OVERF_VERSION)
    pre_parser = PreParser()
    pre_parser.parse("# pragma version ^0.1.0\n")
    assert pre_parser.settings.overf_version == "^0.1.0"


invalid_pragmas = [
    # unknown pragma
    "# pragma optimize gas",
    # invalid policy
    "# pragma overflow unchecked",
    # duplicates
    "# pragma overflow checked\n# pragma overflow checked",
    "# pragma function-body\n# pragma function-body",
    "# pragma runtime-alias a\n# pragma runtime-alias b",
    "# pragma version 0.1.1\n# pragma version 0.1.1",
    # invalid identifier
    "# pragma runtime-alias 1abc",
]


@pytest.mark.parametrize("code", invalid_pragmas)
def test_invalid_pragma(code, mock_version):
    mock_version(OVERF_VERSION)
    with pytest.raises(PragmaException):
        PreParser().parse(code)


def test_invalid_pragma_location():
    code = "x = 1\n# pragma overflow sometimes\n"
    with pytest.raises(PragmaException) as excinfo:
        PreParser().parse(code)
    assert excinfo.value.lineno == 2


def test_tokenizer_error():
    with pytest.raises(SyntaxException):
        PreParser().parse("x = (1,\n")


def test_pragma_policy_used_by_expand():
    expansion = expand("# pragma overflow saturating\nx = a - b\n")
    assert "__overf__.saturating_sub(a, b)" in expansion.source


def test_explicit_policy_overrides_pragma():
    expansion = expand("# pragma overflow saturating\nx = a - b\n", policy=Policy.OVERFLOWING)
    assert "__overf__.wrapping_sub(a, b)" in expansion.source


def test_pragma_conflicts_with_settings():
    code = "# pragma runtime-alias rt\nx = a - b\n"
    with pytest.raises(ValueError, match="settings conflict"):
        expand(code, policy=Policy.CHECKED, settings=Settings(runtime_alias="other"))
