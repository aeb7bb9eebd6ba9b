"""
Tests for font download and glyph table parsing.
"""
import asyncio
import socket

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from scoreDB.errors import FontParseError, FontWriteError, NetworkError
from scoreDB.fonts import FontFetcher, parse_glyph_table

from helpers import DIGIT_CODEPOINTS, DIGIT_NAMES, build_font, digit_font


class RecordingSession:
    """Stands in for a ClientSession and remembers every requested URL."""

    def __init__(self):
        self.requested = []

    def get(self, url, **kwargs):
        self.requested.append(url)
        raise AssertionError(f'unexpected download of {url}')


def serve(routes: dict, scenario):
    """Run scenario(url_template) against a local server answering /fonts/{font_id}."""
    async def handler(request):
        font_id = request.match_info['font_id']
        served = routes.get(font_id)
        if served is None:
            return web.Response(status=404, text='not found')
        return web.Response(body=served, content_type='font/woff')

    async def main():
        app = web.Application()
        app.router.add_get('/fonts/{font_id}', handler)
        async with TestServer(app) as server:
            template = str(server.make_url('/fonts/')) + '{font_id}'
            return await scenario(template)

    return asyncio.run(main())


class TestParseGlyphTable:

    def test_woff_digit_font(self, tmp_path):
        path = tmp_path / 'digits.woff'
        path.write_bytes(digit_font())

        table = parse_glyph_table('F1', str(path))

        assert table.font_id == 'F1'
        assert [g.name for g in table.glyphs] == ['.notdef'] + DIGIT_NAMES
        assert [g.index for g in table.glyphs] == list(range(11))
        assert table.glyphs[0].unicodes == ()
        assert table.by_codepoint() == {cp: name for name, cp in DIGIT_CODEPOINTS.items()}

    def test_plain_truetype_font(self, tmp_path):
        path = tmp_path / 'font.ttf'
        path.write_bytes(build_font({0xE005: 'five', 0xE105: 'five'}, flavor=None))

        table = parse_glyph_table('F2', str(path))

        assert len(table) == 2
        assert table.glyphs[1].name == 'five'
        assert table.glyphs[1].unicodes == (0xE005, 0xE105)

    def test_garbage_raises_parse_error(self, tmp_path):
        path = tmp_path / 'broken.woff'
        path.write_bytes(b'<html>no font here</html>')

        with pytest.raises(FontParseError) as exc_info:
            parse_glyph_table('F3', str(path))
        assert exc_info.value.font_id == 'F3'


class TestFontFetcher:

    def test_font_url(self):
        fetcher = FontFetcher()
        assert fetcher.font_url('AB12CD34') == (
            'http://www.fussball.de/export.fontface/-/format/woff/id/AB12CD34/type/font'
        )
        assert FontFetcher(url_template='http://x/{font_id}').font_url('a/b') == 'http://x/a%2Fb'

    def test_fetch_downloads_and_cleans_up(self, tmp_path):
        async def scenario(template):
            fetcher = FontFetcher(url_template=template, download_dir=str(tmp_path))
            return await fetcher.fetch('F1')

        table = serve({'F1': digit_font()}, scenario)

        assert table.by_codepoint()[DIGIT_CODEPOINTS['eight']] == 'eight'
        assert list(tmp_path.iterdir()) == []

    def test_fetch_with_shared_session(self, tmp_path):
        import aiohttp

        async def scenario(template):
            async with aiohttp.ClientSession() as session:
                fetcher = FontFetcher(session=session, url_template=template, download_dir=str(tmp_path))
                return await asyncio.gather(fetcher.fetch('F1'), fetcher.fetch('F2'))

        first, second = serve({'F1': digit_font(), 'F2': digit_font()}, scenario)

        assert first.font_id == 'F1'
        assert second.font_id == 'F2'
        assert list(tmp_path.iterdir()) == []

    def test_non_success_status_is_network_error(self, tmp_path):
        async def scenario(template):
            fetcher = FontFetcher(url_template=template, download_dir=str(tmp_path))
            with pytest.raises(NetworkError) as exc_info:
                await fetcher.fetch('UNKNOWN')
            return exc_info.value

        error = serve({}, scenario)

        assert '404' in str(error)
        assert list(tmp_path.iterdir()) == []

    def test_unreachable_host_is_network_error(self, tmp_path):
        with socket.socket() as sock:
            sock.bind(('127.0.0.1', 0))
            port = sock.getsockname()[1]

        async def scenario():
            # Nothing listens on the port any more
            fetcher = FontFetcher(url_template=f'http://127.0.0.1:{port}/{{font_id}}', download_dir=str(tmp_path), timeout=5)
            with pytest.raises(NetworkError):
                await fetcher.fetch('F1')

        asyncio.run(scenario())
        assert list(tmp_path.iterdir()) == []

    def test_unparseable_payload_is_parse_error_and_cleans_up(self, tmp_path):
        async def scenario(template):
            fetcher = FontFetcher(url_template=template, download_dir=str(tmp_path))
            with pytest.raises(FontParseError):
                await fetcher.fetch('F1')

        serve({'F1': b'\x00' * 64}, scenario)
        assert list(tmp_path.iterdir()) == []

    def test_missing_download_dir_is_write_error(self, tmp_path):
        session = RecordingSession()
        fetcher = FontFetcher(session=session, download_dir=str(tmp_path / 'nope'))

        with pytest.raises(FontWriteError) as exc_info:
            asyncio.run(fetcher.fetch('F1'))

        assert exc_info.value.font_id == 'F1'
        assert session.requested == []
