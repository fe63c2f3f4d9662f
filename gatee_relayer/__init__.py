"""Relay attested USDC burns and fulfill the ticket purchases they carry."""

from importlib import metadata


def __getattr__(name: str) -> str:
    """Expose the package version via ``gatee_relayer.__version__``."""
    if name == "__version__":
        try:
            return metadata.version("gatee-relayer")
        except metadata.PackageNotFoundError:
            return "0.0.0"
    raise AttributeError(name)


__all__ = ["__version__"]
