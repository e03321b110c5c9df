import contextlib
import warnings
from typing import Optional

from overf.exceptions import _BaseOverfException


class OverfWarning(_BaseOverfException, Warning):
    pass


# print a warning
def overf_warn(warning: OverfWarning | str, node=None):
    if isinstance(warning, str):
        warning = OverfWarning(warning, node)
    warnings.warn(warning, stacklevel=2)


@contextlib.contextmanager
def warnings_filter(warnings_control: Optional[str]):
    # note: using warnings.catch_warnings() since it saves and restores
    # the warnings filter
    with warnings.catch_warnings():
        set_warnings_filter(warnings_control)
        yield


def set_warnings_filter(warnings_control: Optional[str]):
    if warnings_control == "error":
        warnings_filter = "error"
    elif warnings_control == "none":
        warnings_filter = "ignore"
    else:
        assert warnings_control is None  # sanity
        warnings_filter = "default"

    if warnings_control is not None:
        # warnings.simplefilter only adds to the warnings filters,
        # so we should clear warnings filter between calls to simplefilter()
        warnings.resetwarnings()

    warnings.simplefilter(warnings_filter, category=OverfWarning)  # type: ignore[arg-type]


class RedundantPolicy(OverfWarning):
    """
    Warn about a nested policy block which selects the policy that is
    already active, e.g. `default` at top scope
    """

    pass
