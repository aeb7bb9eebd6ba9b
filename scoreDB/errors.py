"""
Exceptions raised while deobfuscating scores and extracting match lists.

Every error derives from ScoreDBError so callers can catch the whole family.
"""


class ScoreDBError(Exception):
    """Base class for all scoreDB errors."""


class FontFetchError(ScoreDBError):
    """A font could not be downloaded or turned into a glyph table."""

    def __init__(self, font_id: str, message: str):
        super().__init__(f'Font "{font_id}": {message}')
        self.font_id = font_id


class NetworkError(FontFetchError):
    """Transport error or non-success status while downloading."""


class FontWriteError(FontFetchError):
    """The temporary font file could not be written."""


class FontParseError(FontFetchError):
    """The downloaded bytes are not a font fontTools can read."""


class CacheInitError(ScoreDBError):
    """The glyph cache schema could not be created."""


class CacheWriteError(ScoreDBError):
    """Font, glyph or codepoint rows could not be recorded."""


class GlyphNotFoundError(ScoreDBError):
    """No glyph is mapped to the codepoint in the given font."""

    def __init__(self, font_id: str, codepoint: int):
        super().__init__(f'No glyph with unicode {codepoint} found for font "{font_id}"!')
        self.font_id = font_id
        self.codepoint = codepoint


class UnsupportedGlyphNameError(ScoreDBError):
    """The resolved glyph name is not one of the ten digit names."""

    def __init__(self, glyph_name: str):
        super().__init__(f'Glyph name "{glyph_name}" is not supported for conversion!')
        self.glyph_name = glyph_name


class MalformedCodepointError(ScoreDBError):
    """A score cell did not yield a font id and a hexadecimal codepoint."""


class ExtractionError(ScoreDBError):
    """A match list page could not be turned into matches."""


class PageFetchError(ScoreDBError):
    """A team page could not be downloaded, even after retrying."""

    def __init__(self, url: str, message: str):
        super().__init__(f'Page "{url}": {message}')
        self.url = url
