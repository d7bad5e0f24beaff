"""Pytest configuration and fixtures."""

import http.server
import io
import socketserver
import struct
import threading
import time
import zlib

import pytest
from PIL import Image

from openmap.core.config import PROVIDERS, TileProvider
from openmap.models.settings import OpenMapSettings


def make_tile_bytes(color=(255, 0, 0, 255), size=(256, 256)) -> bytes:
    """Encode a solid-color PNG tile."""
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def _png_chunk(kind: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data) & 0xFFFFFFFF)


def make_oversized_png_bytes(width=30000, height=30000) -> bytes:
    """Encode a tiny PNG whose header claims more pixels than Pillow will open."""
    header = struct.pack(">IIBBBBB", width, height, 8, 6, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", zlib.compress(b""))
        + _png_chunk(b"IEND", b"")
    )


@pytest.fixture
def tile_server(tmp_path):
    """
    Fixture for creating a local tile server for testing.

    Automatically starts an HTTP server serving tiles from a temporary directory
    and cleans up when the test completes. Every request path and User-Agent
    header is recorded.

    Usage:
        def test_custom_tiles(tile_server):
            tile_server.add_tile(10, 286, 373, (255, 0, 0, 255))
            providers = tile_server.providers()
            ...

    Attributes:
        port (int): The port the server is listening on
        fixtures_dir (Path): Directory where test tiles should be placed (z/x/y.png structure)
        requests (list[str]): Paths requested so far
        user_agents (list[str]): User-Agent header of each request
        delay (float): Seconds each request waits before responding
    """

    class TileServer:
        def __init__(self, port, fixtures_dir, server, thread, requests, user_agents):
            self.port = port
            self.fixtures_dir = fixtures_dir
            self.requests = requests
            self.user_agents = user_agents
            self.delay = 0.0
            self._server = server
            self._thread = thread

        @property
        def base_url(self):
            return f"http://127.0.0.1:{self.port}"

        def add_tile(self, zoom, x, y, color=(255, 0, 0, 255)):
            """Write a solid-color tile at z/x/y.png."""
            return self.add_raw_tile(zoom, x, y, make_tile_bytes(color))

        def add_raw_tile(self, zoom, x, y, data: bytes):
            """Write arbitrary bytes at z/x/y.png."""
            tile_path = self.fixtures_dir / str(zoom) / str(x) / f"{y}.png"
            tile_path.parent.mkdir(parents=True, exist_ok=True)
            tile_path.write_bytes(data)
            return tile_path

        def add_oversized_tile(self, zoom, x, y):
            """Write a PNG at z/x/y.png that Pillow refuses to decode."""
            return self.add_raw_tile(zoom, x, y, make_oversized_png_bytes())

        def providers(self):
            """Provider table with every style served by this server."""
            return {
                style: TileProvider(
                    name=provider.name,
                    display_name=provider.display_name,
                    base_url=self.base_url,
                    attribution_text=provider.attribution_text,
                    attribution_url=provider.attribution_url,
                    dark_variant=provider.dark_variant,
                )
                for style, provider in PROVIDERS.items()
            }

    fixtures_dir = tmp_path / "tile_fixtures"
    fixtures_dir.mkdir()

    recorded_requests = []
    recorded_user_agents = []

    class TileHTTPRequestHandler(http.server.SimpleHTTPRequestHandler):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, directory=str(fixtures_dir), **kwargs)

        def do_GET(self):
            recorded_requests.append(self.path)
            recorded_user_agents.append(self.headers.get("User-Agent", ""))
            if tile_server_instance.delay:
                time.sleep(tile_server_instance.delay)
            super().do_GET()

        def log_message(self, format, *args):
            pass  # Suppress logging during tests

    # Start server on auto-assigned port
    server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), TileHTTPRequestHandler)
    server.daemon_threads = True
    port = server.server_address[1]

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    tile_server_instance = TileServer(port, fixtures_dir, server, thread, recorded_requests, recorded_user_agents)
    yield tile_server_instance

    # Cleanup: shutdown server
    server.shutdown()
    server.server_close()
    thread.join(timeout=1.0)


@pytest.fixture
def settings(tmp_path):
    """Settings with the tile cache in a temporary directory."""
    return OpenMapSettings(
        tile_cache_directory=tmp_path / "cache",
        tile_download_timeout_seconds=5,
        user_agent="OpenMapTests/1.0",
    )


@pytest.fixture
def uncached_settings(tmp_path):
    """Settings with tile caching disabled."""
    return OpenMapSettings(
        enable_tile_cache=False,
        tile_cache_directory=tmp_path / "cache",
        tile_download_timeout_seconds=5,
        user_agent="OpenMapTests/1.0",
    )


@pytest.fixture
def oversized_png():
    """PNG bytes whose header claims 30000x30000 pixels."""
    return make_oversized_png_bytes()
