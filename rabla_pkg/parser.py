"""
Post parsing for Rabla.

A post is a Markdown file whose title is its file name and whose last
non-empty line is the publication date in ``DD.MM.YYYY`` form::

    # Hello

    ![](cat.png)

    01.02.2024

Images are referenced one per line and are looked up in the input
directory's ``attachments/`` folder.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .exceptions import InvalidDateLine, InvalidImageReference

MARKDOWN_SUFFIX = '.md'

SLUG_DISALLOWED_RE = re.compile(r'[^A-Za-z0-9_]')

DATE_LINE_RE = re.compile(r'(?P<day>[0-9]{2})\.(?P<month>[0-9]{2})\.(?P<year>[0-9]{4})')

# ![alt](path) / ![alt](<path with spaces>) / ![alt](path "title")
# Brackets in the alt text and parentheses in the path must be balanced,
# one level deep: ![see [1]](photo(1).png)
MD_IMAGE_RE = re.compile(
    r'!\[(?P<alt>(?:[^\[\]]|\[[^\[\]]*\])*)\]'
    r'\(\s*(?:<(?P<angle_path>[^>]+)>|(?P<path>(?:[^()\s]|\([^()\s]*\))+))(?:\s+"[^"]*")?\s*\)'
)
# ![[path]] / ![[path|300]]
WIKI_IMAGE_RE = re.compile(r'!\[\[(?P<path>[^\]|]+)(?:\|[^\]]*)?\]\]')
# ![path]
BARE_IMAGE_RE = re.compile(r'!\[(?P<path>[^\[\]]+)\]')

REMOTE_PREFIXES = ('http://', 'https://', '//', 'data:')


@dataclass
class PostMetadata:
    """Metadata extracted from a single post."""

    title: str
    date_display: str
    date_key: str
    image_refs: List[str] = field(default_factory=list)


def sanitize_filename(value: str) -> str:
    """
    Turn a post title into a lowercase slug usable as a single path segment.

    Every character outside ``[A-Za-z0-9_]`` (hyphens included) becomes ``_``
    and leading or trailing underscores are removed, so ``"hello-world"``
    gives ``"hello_world"`` and ``"Hello, World!"`` gives ``"hello__world"``.
    Titles made only of disallowed characters give ``""``.
    """
    return SLUG_DISALLOWED_RE.sub('_', value).lower().strip('_')


def is_markdown_file(filename: str) -> bool:
    return os.path.splitext(filename)[1] == MARKDOWN_SUFFIX


def title_from_filename(filename: str) -> str:
    """Strip the ``.md`` suffix; the rest of the name is the post title."""
    return filename[:-len(MARKDOWN_SUFFIX)]


def is_valid_date_line(line: str) -> bool:
    return DATE_LINE_RE.fullmatch(line) is not None


def parse_date_line(line: str, path: Optional[str] = None) -> Tuple[str, str]:
    """
    Split a ``DD.MM.YYYY`` line into its display and sort forms.

    Returns ``(date_display, date_key)``; ``"01.02.2024"`` gives
    ``("02/01", "20240201")``.
    """
    match = DATE_LINE_RE.fullmatch(line)
    if match is None:
        raise InvalidDateLine(f"Expected a DD.MM.YYYY date as the last line, found {line!r}", path=path)
    day, month, year = match.group('day'), match.group('month'), match.group('year')
    return f"{month}/{day}", f"{year}{month}{day}"


def last_non_empty_line(lines: Iterable[str]) -> Optional[str]:
    last = None
    for line in lines:
        if line.strip():
            last = line.strip()
    return last


def match_image_line(line: str) -> Optional[str]:
    """Return the path of a single-line image tag, or None if the line is not one."""
    for pattern in (WIKI_IMAGE_RE, MD_IMAGE_RE, BARE_IMAGE_RE):
        match = pattern.fullmatch(line)
        if match:
            groups = match.groupdict()
            path = groups.get('angle_path') or groups.get('path')
            return path.strip()
    return None


def extract_image_refs(lines: Iterable[str], path: Optional[str] = None) -> List[str]:
    """
    Collect attachment paths from image lines, in order and with duplicates.

    Only lines that start with ``![`` and are longer than three characters
    are considered. Remote images are left alone.
    """
    image_refs = []
    for line_number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if len(stripped) <= 3 or not stripped.startswith('!['):
            continue
        ref = match_image_line(stripped)
        if not ref:
            raise InvalidImageReference(
                f"Unrecognised image reference on line {line_number}: {stripped!r}",
                path=path,
                line_number=line_number,
            )
        if ref.startswith(REMOTE_PREFIXES):
            continue
        image_refs.append(ref)
    return image_refs


def parse_post(raw_text: str, filename_stem: str, source_path: Optional[str] = None) -> PostMetadata:
    """
    Parse the raw Markdown of a post.

    Args:
        raw_text: File contents
        filename_stem: File name without ``.md``, used verbatim as the title
        source_path: Path used in error messages; defaults to ``<stem>.md``

    Returns:
        PostMetadata for the post

    Raises:
        InvalidDateLine: the last non-empty line is not ``DD.MM.YYYY``
        InvalidImageReference: an image line has an unknown shape
    """
    name = source_path or f"{filename_stem}{MARKDOWN_SUFFIX}"
    lines = raw_text.lstrip('\ufeff').splitlines()

    date_line = last_non_empty_line(lines)
    if date_line is None:
        raise InvalidDateLine("Post is empty, expected a DD.MM.YYYY date as the last line", path=name)
    date_display, date_key = parse_date_line(date_line, path=name)

    return PostMetadata(
        title=filename_stem,
        date_display=date_display,
        date_key=date_key,
        image_refs=extract_image_refs(lines, path=name),
    )
