"""Top-level package for cross-chain message matching, dispatch and search."""

from importlib import metadata


def __getattr__(name: str) -> str:
    """Expose the package version via ``courier.__version__``."""
    if name == "__version__":
        try:
            return metadata.version("courier")
        except metadata.PackageNotFoundError:
            return "0.0.0"
    raise AttributeError(name)


__all__ = ["__version__"]
