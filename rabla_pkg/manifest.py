"""Site manifest: one entry per generated post, ordered for the index page."""

from dataclasses import dataclass
from typing import Dict, Iterable, List

from .parser import PostMetadata


@dataclass(frozen=True)
class ManifestEntry:
    """A successfully written post as it appears on the index page."""

    title: str
    slug: str
    date_display: str
    date_key: str

    @classmethod
    def from_metadata(cls, metadata: PostMetadata, slug: str) -> 'ManifestEntry':
        return cls(
            title=metadata.title,
            slug=slug,
            date_display=metadata.date_display,
            date_key=metadata.date_key,
        )

    @property
    def path(self) -> str:
        return f"{self.slug}/"

    def to_index_item(self) -> Dict[str, str]:
        """Template view used by index.html."""
        return {'date': self.date_display, 'path': self.path, 'title': self.title}


def sort_manifest(entries: Iterable[ManifestEntry]) -> List[ManifestEntry]:
    """
    Order entries newest first.

    ``date_key`` is zero-padded ``YYYYMMDD`` so string order is date order.
    ``sorted`` is stable with ``reverse=True`` as well, so posts sharing a
    date keep the order they were built in.
    """
    return sorted(entries, key=lambda entry: entry.date_key, reverse=True)
