"""
Exceptions raised while building a Rabla site.

Every error carries the path of the file (or directory) it is about so the
command-line interface can name it in the diagnostic.
"""

from typing import Optional


class RablaError(Exception):
    """Base class for all build errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path and self.path not in self.message:
            return f"{self.path}: {self.message}"
        return self.message


class DirectoryAccessError(RablaError):
    """Input directory is unreadable or an output directory cannot be created."""


class SourceReadError(RablaError):
    """A post's Markdown source could not be read."""


class ParseError(RablaError):
    """A post's embedded metadata is malformed."""


class InvalidDateLine(ParseError):
    """The last non-empty line of a post is not a DD.MM.YYYY date."""


class InvalidImageReference(ParseError):
    """A line starts like an image tag but matches none of the known forms."""

    def __init__(self, message: str, path: Optional[str] = None, line_number: Optional[int] = None):
        super().__init__(message, path)
        self.line_number = line_number


class SlugError(RablaError):
    """A post title does not map to a usable output directory."""


class EmptySlugError(SlugError):
    pass


class SlugCollisionError(SlugError):
    """Two source files sanitize to the same slug."""

    def __init__(self, message: str, path: Optional[str] = None, other_path: Optional[str] = None):
        super().__init__(message, path)
        self.other_path = other_path


class AttachmentCopyError(RablaError):
    """A referenced image is missing or could not be copied."""


class RenderError(RablaError):
    """A template could not be loaded or rendered."""


class WriteError(RablaError):
    """A generated file could not be written."""


# Errors scoped to a single post; the "skip" policy may continue past these.
POST_ERRORS = (
    SourceReadError,
    ParseError,
    SlugError,
    AttachmentCopyError,
    RenderError,
    WriteError,
)
