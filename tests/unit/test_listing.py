"""
Unit tests for directory listings.
"""

import pytest

from fileserver.static.listing import (
    EMPTY_DIRECTORY_MARKUP,
    DirectoryListing,
    ListingEntry,
    read_listing,
    render,
)
from fileserver.static.resolver import resolve


def render_text(site_root, path: str) -> str:
    body, _ = render(read_listing(resolve(site_root, path)))
    return body.decode("utf-8")


class TestReadListing:

    def test_entries_sorted_by_name(self, site_root):
        listing = read_listing(resolve(site_root, "/"))

        assert [e.name for e in listing.entries] == [
            "empty", "example.html", "example.txt", "images",
        ]

    def test_directories_are_flagged(self, site_root):
        listing = read_listing(resolve(site_root, "/"))
        kinds = {e.name: e.is_directory for e in listing.entries}

        assert kinds == {
            "empty": True,
            "example.html": False,
            "example.txt": False,
            "images": True,
        }

    def test_sorting_is_by_code_point(self, site_root):
        for name in ("b.txt", "B.txt", "a", "_x"):
            (site_root / "empty" / name).write_bytes(b"")

        listing = read_listing(resolve(site_root, "/empty/"))

        assert [e.name for e in listing.entries] == ["B.txt", "_x", "a", "b.txt"]

    def test_display_path_and_prefix(self, site_root):
        with_slash = read_listing(resolve(site_root, "/images/"))
        without_slash = read_listing(resolve(site_root, "/images"))
        root = read_listing(resolve(site_root, "/"))

        assert with_slash.display_path == "/images/"
        assert with_slash.href_prefix == ""
        assert without_slash.display_path == "/images/"
        assert without_slash.href_prefix == "images/"
        assert root.display_path == "/"
        assert root.href_prefix == ""

    def test_empty_directory(self, site_root):
        assert read_listing(resolve(site_root, "/empty/")).is_empty

    def test_file_entity_is_rejected(self, site_root):
        with pytest.raises(ValueError):
            read_listing(resolve(site_root, "/example.txt"))


class TestRender:

    def test_document_structure(self, site_root):
        body, content_type = render(read_listing(resolve(site_root, "/images/")))
        text = body.decode("utf-8")

        assert content_type == "text/html"
        assert text.startswith("<!DOCTYPE html>")
        assert '<meta charset="utf-8">' in text
        assert "<title>Index of /images/</title>" in text
        assert "<h1>Index of /images/</h1>" in text

    def test_file_link(self, site_root):
        text = render_text(site_root, "/images/")

        assert '<li><a href="logo.png">logo.png</a></li>' in text

    def test_directory_link_has_trailing_slash(self, site_root):
        text = render_text(site_root, "/")

        assert '<li><a href="images/">images/</a></li>' in text
        assert '<li><a href="example.txt">example.txt</a></li>' in text

    def test_links_relative_to_slashless_path(self, site_root):
        text = render_text(site_root, "/images")

        assert '<a href="images/logo.png">logo.png</a>' in text

    def test_empty_directory_placeholder(self, site_root):
        text = render_text(site_root, "/empty/")

        assert EMPTY_DIRECTORY_MARKUP in text
        assert "<ul>" not in text

    def test_removing_all_children_gives_placeholder(self, site_root):
        (site_root / "images" / "logo.png").unlink()

        assert "<p>empty directory</p>" in render_text(site_root, "/images/")

    def test_names_are_escaped(self, site_root):
        (site_root / "empty" / '<b>&"x.txt').write_bytes(b"")

        text = render_text(site_root, "/empty/")

        assert "<b>" not in text
        assert '<a href="%3Cb%3E%26%22x.txt">&lt;b&gt;&amp;&quot;x.txt</a>' in text

    def test_url_significant_characters_are_encoded(self, site_root):
        for name in ("notes#1.txt", "a:b.txt", "with space.txt", "q?.txt"):
            (site_root / "empty" / name).write_bytes(b"")

        text = render_text(site_root, "/empty/")

        assert 'href="notes%231.txt"' in text
        assert 'href="a%3Ab.txt"' in text
        assert 'href="with%20space.txt"' in text
        assert 'href="q%3F.txt"' in text

    def test_non_ascii_names(self, site_root):
        (site_root / "empty" / "café.txt").write_bytes(b"")

        text = render_text(site_root, "/empty/")

        assert '<a href="caf%C3%A9.txt">café.txt</a>' in text

    def test_rendering_is_stable(self, site_root):
        entity = resolve(site_root, "/")

        assert render(read_listing(entity)) == render(read_listing(entity))

    def test_render_from_constructed_listing(self):
        listing = DirectoryListing(
            entries=(ListingEntry("docs", True, 0), ListingEntry("a.txt", False, 0)),
            display_path="/site/",
            href_prefix="",
        )

        text = render(listing)[0].decode()

        assert text.index('href="docs/"') < text.index('href="a.txt"')
        assert "Index of /site/" in text
