"""Glyph name to digit conversion on top of the glyph cache."""
from ..errors import GlyphNotFoundError, UnsupportedGlyphNameError

DIGIT_TOKENS: dict[str, int] = {
    'zero': 0,
    'one': 1,
    'two': 2,
    'three': 3,
    'four': 4,
    'five': 5,
    'six': 6,
    'seven': 7,
    'eight': 8,
    'nine': 9,
}


def glyph_name_to_digit(name: str) -> int:
    try:
        return DIGIT_TOKENS[name]
    except KeyError:
        raise UnsupportedGlyphNameError(name) from None


class GlyphDigitResolver:
    """
    Turns (font id, codepoint) into the digit the font draws for it.

    The font must already be cached; go through FontLoader.ensure_loaded first.
    """

    def __init__(self, cache):
        self.cache = cache

    async def decode(self, font_id: str, codepoint: int) -> int:
        name = await self.cache.resolve(font_id, codepoint)
        if name is None:
            raise GlyphNotFoundError(font_id, codepoint)
        return glyph_name_to_digit(name)
