from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _version

from overf.expansion import (
    Expansion,
    checked,
    default,
    expand,
    expand_file,
    overflowing,
    propagating,
    saturating,
)
from overf.policy import Policy
from overf.settings import Settings

__version__: str
try:
    __version__ = _version(__name__)
except PackageNotFoundError:
    from overf.version import version

    __version__ = version
