"""Metadata store populated while a document is parsed."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Optional, Union

from docsift.core.exceptions import MetadataLockedError

# Well-known keys. The pipeline treats every key as opaque; these only keep
# parsers consistent with each other.
CONTENT_TYPE = "Content-Type"
CONTENT_TYPE_HINT = "Content-Type-Hint"
RESOURCE_NAME = "resourceName"
EMBEDDED_RESOURCE_PATH = "embeddedResourcePath"
TITLE = "dc:title"
CREATOR = "dc:creator"
SUBJECT = "dc:subject"
DESCRIPTION = "dc:description"
KEYWORDS = "meta:keyword"
LANGUAGE = "dc:language"
CREATED = "dcterms:created"
MODIFIED = "dcterms:modified"
LAST_AUTHOR = "meta:last-author"
PRODUCER = "pdf:producer"
CREATOR_TOOL = "xmp:CreatorTool"
PAGE_COUNT = "xmpTPg:NPages"
SLIDE_COUNT = "meta:slide-count"
SHEET_COUNT = "meta:sheet-count"
IMAGE_WIDTH = "tiff:ImageWidth"
IMAGE_LENGTH = "tiff:ImageLength"
IMAGE_FORMAT = "image:format"
IMAGE_MODE = "image:mode"
ENCODING = "Content-Encoding"
PARSED_BY = "X-Parsed-By"
EMBEDDED_EXCEPTION = "X-Embedded-Exception"

MetadataValue = Union[str, int, float, bool, date, datetime]


def _to_text(value: MetadataValue) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class Metadata:
    """Ordered, multi-valued string metadata.

    ``set`` replaces every value stored under a name and ``add`` appends one,
    so parsers choose per key whether repeated writes overwrite or accumulate.
    Names keep the order in which they were first written. ``None`` values
    are ignored so optional document properties can be written unchecked.

    Once ``freeze`` is called the instance is read-only.
    """

    def __init__(self, initial: Optional[Dict[str, MetadataValue]] = None) -> None:
        self._values: Dict[str, List[str]] = {}
        self._frozen = False
        if initial:
            for name, value in initial.items():
                self.set(name, value)

    def set(self, name: str, value: Optional[MetadataValue]) -> None:
        """Replace all values for ``name`` with ``value``."""
        self._check_writable(name)
        if value is None:
            return
        self._values[name] = [_to_text(value)]

    def add(self, name: str, value: Optional[MetadataValue]) -> None:
        """Append ``value`` to the values stored for ``name``."""
        self._check_writable(name)
        if value is None:
            return
        self._values.setdefault(name, []).append(_to_text(value))

    def remove(self, name: str) -> None:
        """Drop every value stored for ``name``."""
        self._check_writable(name)
        self._values.pop(name, None)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the first value for ``name``."""
        values = self._values.get(name)
        if not values:
            return default
        return values[0]

    def get_values(self, name: str) -> List[str]:
        """Return every value for ``name`` (empty list when absent)."""
        return list(self._values.get(name, []))

    def is_multi_valued(self, name: str) -> bool:
        return len(self._values.get(name, [])) > 1

    def names(self) -> List[str]:
        return list(self._values)

    def freeze(self) -> None:
        """Make this metadata read-only."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def to_dict(self) -> Dict[str, Any]:
        """Flatten to a plain dict; multi-valued names map to lists."""
        return {
            name: values[0] if len(values) == 1 else list(values)
            for name, values in self._values.items()
        }

    def _check_writable(self, name: str) -> None:
        if self._frozen:
            raise MetadataLockedError(name)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __getitem__(self, name: str) -> str:
        values = self._values.get(name)
        if not values:
            raise KeyError(name)
        return values[0]

    def __setitem__(self, name: str, value: MetadataValue) -> None:
        self.set(name, value)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Metadata):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"Metadata({self.to_dict()!r})"
