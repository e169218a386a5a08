"""tokenreg — owner-controlled registry of named token lists."""

from tokenreg.registry import Registry

__all__ = ["Registry"]
__version__ = "0.1.0"
