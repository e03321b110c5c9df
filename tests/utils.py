import contextlib
import os
import textwrap

from overf.expansion import expand


@contextlib.contextmanager
def working_directory(directory):
    tmp = os.getcwd()
    try:
        os.chdir(directory)
        yield
    finally:
        os.chdir(tmp)


def expand_source(source_code, policy=None, settings=None):
    """
    Expand a (possibly indented) block and fail on deferred diagnostics.
    """
    expansion = expand(textwrap.dedent(source_code), policy=policy, settings=settings)
    expansion.diagnostics.raise_if_not_empty()
    return expansion


def exec_source(source_code, policy=None, settings=None):
    expansion = expand_source(source_code, policy=policy, settings=settings)
    namespace: dict = {}
    exec(compile(expansion.source, "<overf>", "exec"), namespace)
    return namespace
