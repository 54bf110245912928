"""Structured directive documents and the engines that apply them."""

from .engine import DefaultDirectiveEngine, DirectiveEngine
from .schema import DirectiveDocument, DirectiveError, decode_directive

__all__ = [
    "DefaultDirectiveEngine",
    "DirectiveDocument",
    "DirectiveEngine",
    "DirectiveError",
    "decode_directive",
]
