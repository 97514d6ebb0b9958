from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from contracts.areas import Area
from contracts.extraction import ExtractionOutcome
from pdf_document.engines.base import DocumentBackend

from .fingerprint import areas_fingerprint
from .module import run_extraction

logger = logging.getLogger(__name__)


class ExtractionSession:
    """
    Keeps the last complete extraction of one document and reruns only when the
    Area configuration, the document or the excluded pages changed.

    Cancelled and fatal outcomes are returned but never cached.
    """

    def __init__(self, document: DocumentBackend | None) -> None:
        self._document = document
        self._fingerprint: str | None = None
        self._outcome: ExtractionOutcome | None = None

    @property
    def cached(self) -> ExtractionOutcome | None:
        return self._outcome

    def invalidate(self) -> None:
        self._fingerprint = None
        self._outcome = None

    def fingerprint(self, areas: Sequence[Area], excluded_pages: Iterable[int] = ()) -> str:
        source_id = None if self._document is None else self._document.source_id()
        return areas_fingerprint(areas, source_id=source_id, excluded_pages=excluded_pages)

    def is_stale(self, areas: Sequence[Area], excluded_pages: Iterable[int] = ()) -> bool:
        if self._outcome is None:
            return True
        return self.fingerprint(areas, excluded_pages) != self._fingerprint

    def extract(
        self,
        areas: Sequence[Area],
        *,
        excluded_pages: Iterable[int] = (),
        **kwargs: Any,
    ) -> ExtractionOutcome:
        excluded = sorted(set(int(p) for p in excluded_pages))
        fp = self.fingerprint(areas, excluded)
        if self._outcome is not None and fp == self._fingerprint:
            logger.info("extraction cache hit (%s)", fp[:12])
            return self._outcome

        outcome = run_extraction(areas=areas, document=self._document, excluded_pages=excluded, **kwargs)
        if outcome.ok:
            self._fingerprint = fp
            self._outcome = outcome
        return outcome
