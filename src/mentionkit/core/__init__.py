"""Core value types shared by the markup and editor layers."""

from .ranges import TextRange

__all__ = ["TextRange"]
