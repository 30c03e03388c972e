"""Squad Digest - weekly change analysis and roll-up reporting for squads."""

from ._version import __version__

__all__ = ["__version__"]
