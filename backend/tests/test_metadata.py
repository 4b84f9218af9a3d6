"""Metadata store tests."""

from datetime import datetime, timezone

import pytest

from docsift.core.exceptions import MetadataLockedError
from docsift.documents import metadata as keys
from docsift.documents.metadata import Metadata


class TestMetadataValues:
    """Test setting and reading values."""

    def test_set_replaces_values(self):
        """Test that set overwrites earlier values."""
        md = Metadata()
        md.set(keys.TITLE, "First")
        md.set(keys.TITLE, "Second")

        assert md.get(keys.TITLE) == "Second"
        assert md.get_values(keys.TITLE) == ["Second"]

    def test_add_accumulates_values(self):
        """Test that add keeps every value in order."""
        md = Metadata()
        md.add(keys.PARSED_BY, "auto")
        md.add(keys.PARSED_BY, "docx")

        assert md.get(keys.PARSED_BY) == "auto"
        assert md.get_values(keys.PARSED_BY) == ["auto", "docx"]
        assert md.is_multi_valued(keys.PARSED_BY)

    def test_none_is_ignored(self):
        """Test that optional properties can be written unchecked."""
        md = Metadata()
        md.set(keys.TITLE, None)
        md.add(keys.CREATOR, None)

        assert keys.TITLE not in md
        assert len(md) == 0

    def test_values_are_stringified(self):
        """Test conversion of non-string values."""
        md = Metadata()
        created = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)
        md.set(keys.CREATED, created)
        md.set(keys.PAGE_COUNT, 3)
        md.set("custom:flag", True)

        assert md.get(keys.CREATED) == "2024-03-01T12:30:00+00:00"
        assert md[keys.PAGE_COUNT] == "3"
        assert md["custom:flag"] == "true"

    def test_missing_key(self):
        """Test lookups of absent names."""
        md = Metadata()

        assert md.get("missing") is None
        assert md.get("missing", "fallback") == "fallback"
        assert md.get_values("missing") == []
        with pytest.raises(KeyError):
            md["missing"]

    def test_names_keep_insertion_order(self):
        """Test that names iterate in first-write order."""
        md = Metadata({keys.CONTENT_TYPE: "text/plain"})
        md.set(keys.TITLE, "T")
        md.set(keys.CONTENT_TYPE, "application/pdf")

        assert md.names() == [keys.CONTENT_TYPE, keys.TITLE]
        assert list(md) == md.names()

    def test_to_dict(self):
        """Test flattening to a plain dict."""
        md = Metadata()
        md.set(keys.TITLE, "Report")
        md.add(keys.PARSED_BY, "auto")
        md.add(keys.PARSED_BY, "pymupdf")

        assert md.to_dict() == {
            keys.TITLE: "Report",
            keys.PARSED_BY: ["auto", "pymupdf"],
        }

    def test_remove(self):
        """Test removing a name."""
        md = Metadata({keys.TITLE: "Report"})
        md.remove(keys.TITLE)
        md.remove("never-set")

        assert keys.TITLE not in md


class TestMetadataFreeze:
    """Test read-only metadata."""

    def test_frozen_metadata_rejects_writes(self):
        """Test that every mutator raises once frozen."""
        md = Metadata({keys.TITLE: "Report"})
        md.freeze()

        assert md.frozen
        with pytest.raises(MetadataLockedError):
            md.set(keys.TITLE, "Changed")
        with pytest.raises(MetadataLockedError):
            md.add(keys.CREATOR, "someone")
        with pytest.raises(MetadataLockedError):
            md.remove(keys.TITLE)
        with pytest.raises(MetadataLockedError):
            md[keys.TITLE] = "Changed"

        assert md.get(keys.TITLE) == "Report"

    def test_frozen_metadata_is_readable(self):
        """Test reads still work after freeze."""
        md = Metadata({keys.TITLE: "Report"})
        md.freeze()

        assert md[keys.TITLE] == "Report"
        assert md == Metadata({keys.TITLE: "Report"})
