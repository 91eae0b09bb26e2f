"""Tests for the preview server."""

import threading
import urllib.request

import pytest
import os
from pathlib import Path
from unittest.mock import patch

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rabla_pkg.exceptions import DirectoryAccessError
from rabla_pkg.server import DEFAULT_PORT, create_server, serve_directory


@pytest.fixture
def site_dir(temp_dir):
    site = Path(temp_dir) / 'site'
    site.mkdir()
    (site / 'index.html').write_text('<h1>Index</h1>', encoding='utf-8')
    return str(site)


class TestPreviewServer:
    """Test cases for the preview server."""

    def test_serves_site_directory(self, site_dir):
        httpd = create_server(site_dir, 0, '127.0.0.1')
        thread = threading.Thread(target=httpd.serve_forever, daemon=True)
        thread.start()
        try:
            port = httpd.server_address[1]
            with urllib.request.urlopen(f'http://127.0.0.1:{port}/index.html', timeout=5) as response:
                assert response.status == 200
                assert response.read() == b'<h1>Index</h1>'
        finally:
            httpd.shutdown()
            httpd.server_close()
            thread.join(timeout=5)

    def test_missing_directory(self, temp_dir):
        with pytest.raises(DirectoryAccessError):
            create_server(os.path.join(temp_dir, 'missing'), 0)

    def test_serve_directory_stops_on_keyboard_interrupt(self, site_dir):
        with patch('rabla_pkg.server.create_server') as mock_create:
            httpd = mock_create.return_value
            httpd.__enter__.return_value = httpd
            httpd.server_address = ('localhost', DEFAULT_PORT)
            httpd.serve_forever.side_effect = KeyboardInterrupt

            serve_directory(site_dir)

        mock_create.assert_called_once_with(site_dir, DEFAULT_PORT, 'localhost')
        httpd.serve_forever.assert_called_once()
        httpd.__exit__.assert_called_once()
