import argparse
import asyncio
import logging
import re
import sys

from .config import CACHE_PATH, CONCURRENCY, DEFAULT_TEAM_IDS
from .db_utils import GlyphCache
from .display import glyph_table_lines, match_lines
from .errors import ScoreDBError
from .fonts import FontFetcher, ScoreDeobfuscator
from .ingestion import scrape_teams

_CODEPOINT_PREFIX = re.compile(r'^(?:u\+|0x|%u)', re.IGNORECASE)


def parse_codepoint(value: str) -> int:
    """Parse a hexadecimal codepoint, optionally prefixed with U+, 0x or %u."""
    digits = _CODEPOINT_PREFIX.sub('', value.strip())
    try:
        return int(digits, 16)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid codepoint: {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scoredb", description="fussball.de match results with deobfuscated scores")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--db", default=CACHE_PATH, help="Glyph cache database (default: in-memory)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_matches = sub.add_parser("matches", help="Print the previous matches of one or more teams")
    p_matches.add_argument("team_ids", nargs="*", help="fussball.de team ids (default: built-in list)")
    p_matches.add_argument("--concurrency", type=int, default=CONCURRENCY, help="Team pages fetched in parallel")

    p_decode = sub.add_parser("decode", help="Decode one obfuscated codepoint")
    p_decode.add_argument("font_id", help="Font id (data-obfuscation attribute)")
    p_decode.add_argument("codepoint", type=parse_codepoint, help="Codepoint in hex, e.g. E021 or U+E021")

    p_font = sub.add_parser("font", help="Download a font and print its glyph table")
    p_font.add_argument("font_id", help="Font id (data-obfuscation attribute)")
    return parser


async def _matches(args) -> int:
    team_ids = args.team_ids or DEFAULT_TEAM_IDS
    async with ScoreDeobfuscator(cache=GlyphCache(args.db)) as deobfuscator:
        result = await scrape_teams(team_ids, deobfuscator=deobfuscator, concurrency=args.concurrency)

    for team_id in team_ids:
        if team_id in result.matches:
            print(f"Team {team_id}: {len(result.matches[team_id])} match(es)")
            print('#' * 80)
            for line in match_lines(result.matches[team_id]):
                print(line)
            print('#' * 80)
        elif team_id in result.errors:
            print(f"Team {team_id}: ERROR {result.errors[team_id]}")
    print(f"Processed {result.success_count} team(s), {result.error_count} error(s)")
    return 1 if result.error_count else 0


async def _decode(args) -> int:
    async with ScoreDeobfuscator(cache=GlyphCache(args.db)) as deobfuscator:
        digit = await deobfuscator.digit(args.font_id, args.codepoint)
    print(digit)
    return 0


async def _font(args) -> int:
    table = await FontFetcher().fetch(args.font_id)
    print(f"Font {args.font_id}: {len(table)} glyph(s)")
    for line in glyph_table_lines(table):
        print(line)
    return 0


COMMANDS = {
    "matches": _matches,
    "decode": _decode,
    "font": _font,
}


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(COMMANDS[args.cmd](args))
    except ScoreDBError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
