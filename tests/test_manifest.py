"""Tests for the site manifest."""

import dataclasses

import pytest
import os

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rabla_pkg.manifest import ManifestEntry, sort_manifest
from rabla_pkg.parser import PostMetadata


def make_entry(date_key, title=None):
    title = title or f"post-{date_key}"
    return ManifestEntry(title=title, slug=title.replace('-', '_'), date_display=f"{date_key[4:6]}/{date_key[6:]}", date_key=date_key)


class TestManifestEntry:
    """Test cases for ManifestEntry."""

    def test_from_metadata(self):
        metadata = PostMetadata(title='hello-world', date_display='02/01', date_key='20240201', image_refs=['cat.png'])
        entry = ManifestEntry.from_metadata(metadata, 'hello_world')
        assert entry == ManifestEntry(title='hello-world', slug='hello_world', date_display='02/01', date_key='20240201')

    def test_index_item(self):
        entry = ManifestEntry(title='hello-world', slug='hello_world', date_display='02/01', date_key='20240201')
        assert entry.path == 'hello_world/'
        assert entry.to_index_item() == {'date': '02/01', 'path': 'hello_world/', 'title': 'hello-world'}

    def test_entries_are_immutable(self):
        entry = make_entry('20240101')
        with pytest.raises(dataclasses.FrozenInstanceError):
            entry.title = 'changed'


class TestSortManifest:
    """Test cases for sort_manifest."""

    def test_sorted_newest_first(self):
        entries = [make_entry(key) for key in ['20240101', '20240301', '20240201']]
        assert [e.date_key for e in sort_manifest(entries)] == ['20240301', '20240201', '20240101']

    def test_equal_keys_keep_input_order(self):
        entries = [
            make_entry('20240101', 'first'),
            make_entry('20240505', 'second'),
            make_entry('20240101', 'third'),
            make_entry('20240505', 'fourth'),
            make_entry('20240101', 'fifth'),
        ]
        titles = [e.title for e in sort_manifest(entries)]
        assert titles == ['second', 'fourth', 'first', 'third', 'fifth']

    def test_does_not_modify_input(self):
        entries = [make_entry('20240101'), make_entry('20240301')]
        original = list(entries)
        result = sort_manifest(entries)
        assert entries == original
        assert result is not entries

    def test_empty(self):
        assert sort_manifest([]) == []

    def test_accepts_iterables(self):
        entries = (make_entry(key) for key in ['19991231', '20000101'])
        assert [e.date_key for e in sort_manifest(entries)] == ['20000101', '19991231']
