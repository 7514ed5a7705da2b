# petrikit/version.py
"""Version of the installed ``petrikit`` distribution."""

from importlib import metadata

DISTRIBUTION = "petrikit"


def _installed_version() -> str:
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        # running from a source tree that was never installed
        return "0.1.0.dev0"


__version__ = _installed_version()
