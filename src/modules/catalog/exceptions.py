"""Catalog domain exceptions.

Raised by the resolver.  The finalization service attaches the
offending ``line_id`` before surfacing them to the operator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

from shared.domain.exceptions import DataIntegrityWarning, ResolutionError

if TYPE_CHECKING:
    from modules.catalog.dtos import AmbiguityWarning


class CatalogEntryNotFound(ResolutionError):
    """No catalog row carries the requested SKU id."""

    def __init__(self, message: str, *, selector_key: str, line_id: Optional[str] = None):
        super().__init__(message)
        self.selector_key = selector_key
        self.line_id = line_id


class IncompleteCatalogEntry(ResolutionError):
    """The operator's selection lacks one or more mandatory fields."""

    def __init__(
        self,
        message: str,
        *,
        missing_fields: Sequence[str],
        line_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.missing_fields = tuple(missing_fields)
        self.line_id = line_id


class AmbiguousCatalogKey(DataIntegrityWarning):
    """A SKU id keyed several rows and strict resolution is enabled."""

    def __init__(self, warning: AmbiguityWarning, *, line_id: Optional[str] = None):
        super().__init__(warning.message)
        self.warning = warning
        self.line_id = line_id
