"""
Score font deobfuscation.

- fetch: font download and glyph table extraction
- loader: one load per font id, however many cells reference it
- resolver: cached glyph name to digit
- deobfuscator: the three wired together over one glyph cache
"""
from .deobfuscator import ScoreDeobfuscator
from .fetch import FontFetcher, Glyph, GlyphTable, parse_glyph_table
from .loader import FontLoader, LoadState
from .resolver import DIGIT_TOKENS, GlyphDigitResolver, glyph_name_to_digit

__all__ = [
    "ScoreDeobfuscator",
    "FontFetcher",
    "Glyph",
    "GlyphTable",
    "parse_glyph_table",
    "FontLoader",
    "LoadState",
    "DIGIT_TOKENS",
    "GlyphDigitResolver",
    "glyph_name_to_digit",
]
