"""
Rabla - a small static blog generator.

Rabla takes a directory of Markdown posts, each ending with a DD.MM.YYYY
date line, and turns them into one HTML page per post plus an index page
listing the posts newest first. Images referenced by a post are copied from
the input's attachments/ directory next to the post's page.
"""

__version__ = "1.0.0"

from .core import Rabla, PostProcessor
from .manifest import ManifestEntry, sort_manifest
from .parser import PostMetadata, parse_post, sanitize_filename

__all__ = [
    'Rabla',
    'PostProcessor',
    'ManifestEntry',
    'sort_manifest',
    'PostMetadata',
    'parse_post',
    'sanitize_filename',
]
