"""Test configuration and fixtures for Rabla tests."""

import pytest
import tempfile
import shutil
import os
from pathlib import Path

# Minimal PNG image (1x1 pixel)
PNG_DATA = b'\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00\x90wS\xde\x00\x00\x00\tpHYs\x00\x00\x0b\x13\x00\x00\x0b\x13\x01\x00\x9a\x9c\x18\x00\x00\x00\nIDATx\x9cc\xf8\x00\x00\x00\x01\x00\x01\x00\x00\x00\x00IEND\xaeB`\x82'


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def sample_image_data():
    """Sample image data for testing."""
    return PNG_DATA


@pytest.fixture
def mock_input_dir(temp_dir):
    """Create an input directory with two dated posts and their attachments."""
    input_dir = Path(temp_dir) / 'posts'
    attachments_dir = input_dir / 'attachments'
    (attachments_dir / 'trips').mkdir(parents=True)

    (attachments_dir / 'cat.png').write_bytes(PNG_DATA)
    (attachments_dir / 'trips' / 'beach.png').write_bytes(PNG_DATA)

    (input_dir / 'hello-world.md').write_text(
        "# Hi\n"
        "![cat.png]\n"
        "01.02.2024\n",
        encoding='utf-8'
    )

    (input_dir / 'Summer Trip.md').write_text(
        "# Summer trip\n"
        "\n"
        "We went to the beach.\n"
        "\n"
        "![](trips/beach.png)\n"
        "\n"
        "15.07.2024\n",
        encoding='utf-8'
    )

    # Not posts
    (input_dir / 'notes.txt').write_text("not a post\n", encoding='utf-8')
    (input_dir / 'drafts.md').mkdir()

    return str(input_dir)


@pytest.fixture
def mock_output_dir(temp_dir):
    """Path for per-post output (not created yet)."""
    return os.path.join(temp_dir, 'output')


@pytest.fixture
def mock_site_dir(temp_dir):
    """Path for index.html and style.css (not created yet)."""
    return os.path.join(temp_dir, 'site')


@pytest.fixture
def mock_templates_dir(temp_dir):
    """Create a templates directory overriding the packaged templates."""
    templates_dir = Path(temp_dir) / 'templates'
    templates_dir.mkdir()

    (templates_dir / 'single.html').write_text(
        "<article><h1>{{ title }}</h1>{{ body }}</article>",
        encoding='utf-8'
    )
    (templates_dir / 'index.html').write_text(
        "{{ title }}|{% for item in items %}{{ item.date }} {{ item.path }} {{ item.title }};{% endfor %}",
        encoding='utf-8'
    )

    return str(templates_dir)


@pytest.fixture
def write_post(mock_input_dir):
    """Write an extra post into the input directory."""
    def _write(filename, text):
        path = os.path.join(mock_input_dir, filename)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text)
        return path
    return _write
