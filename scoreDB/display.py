from typing import Iterable

from .fonts import GlyphTable
from .scrapers.match_list import Match


def format_match(match: Match) -> str:
    started = match.started.strftime('%d.%m.%y %H:%M')
    return f"{started}  {match.home.name:30s} {match.home.score}:{match.guest.score}  {match.guest.name}"


def match_lines(matches: Iterable[Match]) -> list[str]:
    return [format_match(m) for m in matches]


def glyph_table_lines(table: GlyphTable) -> list[str]:
    lines = []
    for glyph in table.glyphs:
        codes = ', '.join(f"U+{u:04X}" for u in glyph.unicodes) or '-'
        lines.append(f"{glyph.index:4d}  {glyph.name:20s} {codes}")
    return lines
