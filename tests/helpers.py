"""Font, page and fetcher builders shared by the tests."""
import asyncio
import io

from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen

from scoreDB.fonts import Glyph, GlyphTable

DIGIT_NAMES = ['zero', 'one', 'two', 'three', 'four', 'five', 'six', 'seven', 'eight', 'nine']

# One private-use codepoint per digit, deliberately out of order
DIGIT_CODEPOINTS = {name: 0xE020 + (7 * i) % 10 for i, name in enumerate(DIGIT_NAMES)}

HOME_ID = '011MIFCKI8000000VTVG0001VTR8C1K7'
GUEST_ID = '011MID3JL8000000VTVG0001VTR8C1K7'


def _box_glyph():
    pen = TTGlyphPen(None)
    pen.moveTo((100, 0))
    pen.lineTo((100, 700))
    pen.lineTo((500, 700))
    pen.lineTo((500, 0))
    pen.closePath()
    return pen.glyph()


def build_font(cmap: dict[int, str], flavor: str | None = 'woff') -> bytes:
    """Build a minimal font whose cmap maps each codepoint to the given glyph name."""
    glyph_order = ['.notdef'] + list(dict.fromkeys(cmap.values()))
    fb = FontBuilder(1000, isTTF=True)
    fb.setupGlyphOrder(glyph_order)
    fb.setupCharacterMap(cmap)
    fb.setupGlyf({name: _box_glyph() for name in glyph_order})
    glyf = fb.font['glyf']
    fb.setupHorizontalMetrics({name: (600, glyf[name].xMin) for name in glyph_order})
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable({'familyName': 'ScoreFont', 'styleName': 'Regular'})
    fb.setupOS2(sTypoAscender=800, usWinAscent=800, usWinDescent=200)
    fb.setupPost()
    fb.font.flavor = flavor
    buf = io.BytesIO()
    fb.save(buf)
    return buf.getvalue()


def digit_font() -> bytes:
    return build_font({cp: name for name, cp in DIGIT_CODEPOINTS.items()})


def digit_table(font_id: str) -> GlyphTable:
    glyphs = [Glyph(index=0, name='.notdef')]
    glyphs += [
        Glyph(index=i + 1, name=name, unicodes=(DIGIT_CODEPOINTS[name],))
        for i, name in enumerate(DIGIT_NAMES)
    ]
    return GlyphTable(font_id=font_id, glyphs=tuple(glyphs))


def team_url(team_id: str, slug: str = 'fc-test') -> str:
    return f'https://www.fussball.de/mannschaft/{slug}/-/saison/2324/team-id/{team_id}'


def club_cell(team_id: str, name: str) -> str:
    return (
        f'<td class="column-club"><a href="{team_url(team_id)}" class="club-wrapper">'
        f'<div class="club-logo"></div><div class="club-name">{name}</div></a></td>'
    )


def score_cell(font_id: str, home: int | None, guest: int | None) -> str:
    parts = []
    if home is not None:
        parts.append(f'<span data-obfuscation="{font_id}" class="score-left">&#x{home:X};</span>')
    parts.append('<span class="colon">:</span>')
    if guest is not None:
        parts.append(f'<span data-obfuscation="{font_id}" class="score-right">&#x{guest:X};</span>')
    return f'<td class="column-score"><a href="#">{"".join(parts)}</a></td>'


def match_row(date_text: str, font_id: str, home_digit: int, guest_digit: int,
              home=('FC Home', HOME_ID), guest=('SV Guest', GUEST_ID)) -> str:
    home_cp = DIGIT_CODEPOINTS[DIGIT_NAMES[home_digit]]
    guest_cp = DIGIT_CODEPOINTS[DIGIT_NAMES[guest_digit]]
    return (
        '<tr>'
        f'<td class="column-date">{date_text}</td>'
        f'{club_cell(home[1], home[0])}'
        f'{score_cell(font_id, home_cp, guest_cp)}'
        f'{club_cell(guest[1], guest[0])}'
        '</tr>'
    )


def match_page(rows: list[str]) -> str:
    return f'<div class="table-container"><table class="table"><tbody>{"".join(rows)}</tbody></table></div>'


class FakeFetcher:
    """Fetcher returning canned glyph tables after yielding to the event loop."""

    def __init__(self, tables=None, errors=None, delay: float = 0.01):
        self.tables = tables or {}
        self.errors = errors or {}
        self.delay = delay
        self.calls = []

    async def fetch(self, font_id: str) -> GlyphTable:
        self.calls.append(font_id)
        await asyncio.sleep(self.delay)
        error = self.errors.get(font_id)
        if error is not None:
            raise error
        if font_id in self.tables:
            return self.tables[font_id]
        return digit_table(font_id)
