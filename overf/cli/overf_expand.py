#!/usr/bin/env python3
import argparse
import sys
import warnings
from pathlib import Path
from typing import Iterable, Iterator, Optional, Set, TypeVar

import overf
from overf.expansion import Expansion, expand_file
from overf.policy import Policy
from overf.settings import OVERF_TRACEBACK_LIMIT, Settings
from overf.warnings import set_warnings_filter

T = TypeVar("T")

policy_options_help = """Initial overflow policy of each file, one of:
checked     - panic (OverflowPanic) on overflow
overflowing - wrap around on overflow (alias: wrapping)
saturating  - clamp to the bounds of the type
propagating - return None from the enclosing function
default     - leave arithmetic unchanged (alias: reset)
When omitted, the `# pragma overflow` of each file decides.
"""


def _parse_cli_args():
    return _parse_args(sys.argv[1:])


def _cli_helper(f, expanded: dict) -> None:
    for path, expansion in expanded.items():
        if len(expanded) > 1:
            print(f"# {path}", file=f)
        print(expansion.source, file=f)


def _parse_args(argv):
    warnings.simplefilter("always")

    parser = argparse.ArgumentParser(
        description="Explicit overflow policies for Python arithmetic",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("input_files", help="Python source files to expand", nargs="+")
    parser.add_argument("--version", action="version", version=overf.__version__)
    parser.add_argument(
        "-p",
        "--policy",
        help=policy_options_help,
        choices=["checked", "overflowing", "wrapping", "saturating", "propagating", "default", "reset"],
    )
    parser.add_argument(
        "--function-body",
        help="Treat each file as the body of a function, allowing propagating "
        "arithmetic at its top level",
        action="store_true",
    )
    parser.add_argument(
        "--runtime-alias", help="Name the runtime module is imported as (default __overf__)"
    )
    parser.add_argument(
        "--no-runtime-import",
        help="Do not insert the runtime import into the expanded source",
        action="store_true",
    )
    parser.add_argument(
        "-W",
        help="Control warnings: `error` turns them into errors, `none` silences them",
        choices=["error", "none"],
        dest="warnings_control",
    )
    parser.add_argument(
        "--traceback-limit",
        help="Set the traceback limit for error messages reported by the expander",
        type=int,
    )
    parser.add_argument("-o", help="Set the output path", dest="output_path")

    args = parser.parse_args(argv)

    if args.traceback_limit is not None:
        sys.tracebacklimit = args.traceback_limit
    elif OVERF_TRACEBACK_LIMIT is not None:
        sys.tracebacklimit = OVERF_TRACEBACK_LIMIT
    else:
        # Python usually defaults sys.tracebacklimit to 1000. We use a default
        # setting of zero so error printouts only include information about
        # where an error occurred in the expanded source file.
        sys.tracebacklimit = 0

    if args.warnings_control is not None:
        set_warnings_filter(args.warnings_control)

    settings = Settings()
    if args.function_body:
        settings.function_body = True
    if args.runtime_alias is not None:
        if not args.runtime_alias.isidentifier():
            raise ValueError(f"Invalid runtime alias `{args.runtime_alias}`")
        settings.runtime_alias = args.runtime_alias
    if args.no_runtime_import:
        settings.emit_import = False

    policy = None
    if args.policy is not None:
        policy = Policy.from_string(args.policy)

    expanded = expand_files(args.input_files, policy, settings)

    if args.output_path:
        with open(args.output_path, "w") as f:
            _cli_helper(f, expanded)
    else:
        f = sys.stdout
        _cli_helper(f, expanded)


def uniq(seq: Iterable[T]) -> Iterator[T]:
    """
    Yield unique items in ``seq`` in order.
    """
    seen: Set[T] = set()

    for x in seq:
        if x in seen:
            continue

        seen.add(x)
        yield x


def exc_handler(path: Path, exception: Exception) -> None:
    print(f"Error expanding: {path}")
    raise exception


def expand_files(
    input_files: list[str], policy: Optional[Policy] = None, settings: Optional[Settings] = None
) -> dict[Path, Expansion]:
    ret: dict[Path, Expansion] = {}

    for file_name in uniq(input_files):
        file_path = Path(file_name)
        try:
            expansion = expand_file(file_path, policy=policy, settings=settings)
            expansion.diagnostics.raise_if_not_empty()
        except Exception as e:
            exc_handler(file_path, e)

        ret[file_path] = expansion

    return ret


if __name__ == "__main__":
    _parse_args(sys.argv[1:])
