import io
import re
from tokenize import COMMENT, TokenError, tokenize

from packaging.specifiers import InvalidSpecifier, SpecifierSet

from overf.exceptions import PragmaException, SyntaxException, VersionException
from overf.policy import Policy
from overf.settings import Settings


def validate_version_pragma(version_str: str, location: tuple[str, int, int]) -> None:
    """
    Validates a version pragma directive against the current overf version.
    """
    from overf import __version__

    if len(version_str) == 0:
        raise VersionException("Version specification cannot be empty", *location)

    # X.Y.Z or vX.Y.Z => ==X.Y.Z, ==vX.Y.Z
    if re.match("[v0-9]", version_str):
        version_str = "==" + version_str
    # convert npm to pep440
    version_str = re.sub("^\\^", "~=", version_str)

    try:
        spec = SpecifierSet(version_str)
    except InvalidSpecifier:
        raise VersionException(
            f'Version specification "{version_str}" is not a valid PEP440 specifier', *location
        )

    if not spec.contains(__version__, prereleases=True):
        raise VersionException(
            f'Version specification "{version_str}" is not compatible '
            f'with overf version "{__version__}"',
            *location,
        )


def _parse_pragma(comment_contents, settings, code, start):
    pragma = comment_contents.removeprefix("pragma ").strip()

    # location for error messages
    location = code, *start

    if pragma.startswith("version "):
        if settings.overf_version is not None:
            raise PragmaException("pragma version specified twice!", *location)
        overf_version = pragma.removeprefix("version ").strip()
        validate_version_pragma(overf_version, location)
        settings.overf_version = overf_version
        return

    if pragma.startswith("overflow "):
        if settings.policy is not None:
            raise PragmaException("pragma overflow specified twice!", *location)
        mode = pragma.removeprefix("overflow").strip()
        try:
            settings.policy = Policy.from_string(mode)
        except ValueError:
            raise PragmaException(f"Invalid overflow policy `{mode}`", *location)
        return

    if pragma == "function-body":
        if settings.function_body is not None:
            raise PragmaException("pragma function-body specified twice!", *location)
        settings.function_body = True
        return

    if pragma.startswith("runtime-alias "):
        if settings.runtime_alias is not None:
            raise PragmaException("pragma runtime-alias specified twice!", *location)
        alias = pragma.removeprefix("runtime-alias").strip()
        if not alias.isidentifier():
            raise PragmaException(f"Invalid runtime alias `{alias}`", *location)
        settings.runtime_alias = alias
        return

    raise PragmaException(f"Unknown pragma `{pragma.split()[0]}`", *location)


class PreParser:
    # Expansion settings based on the directives in the source code
    settings: Settings

    def parse(self, code: str):
        """
        Scan a python source string for `# pragma` directives.

        * Validates the "version" pragma against the current overf version
        * Reads the "overflow", "function-body" and "runtime-alias" pragmas
          into a Settings object

        Parameters
        ----------
        code : str
            The python source code to be scanned.
        """
        try:
            self._parse(code)
        except TokenError as e:
            raise SyntaxException(e.args[0], code, e.args[1][0], e.args[1][1]) from e

    def _parse(self, code: str):
        settings = Settings()

        code_bytes = code.encode("utf-8")
        for token in tokenize(io.BytesIO(code_bytes).readline):
            if token.type != COMMENT:
                continue

            contents = token.string[1:].strip()
            if contents.startswith("pragma "):
                _parse_pragma(contents, settings, code, token.start)

        self.settings = settings
