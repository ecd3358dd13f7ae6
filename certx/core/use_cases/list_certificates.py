"""
Use Case: Certificate list

Loads one page of certificates for the current filters. The list is
always refetched, never patched, and when two fetches overlap only the
last one triggered is allowed to land.
"""

import logging
import threading
from dataclasses import dataclass, field, replace

from certx.core.debounce import Debouncer
from certx.core.entities.certificate import Certificate, CertStatus
from certx.core.entities.user import Session
from certx.core.errors import CertxError
from certx.core.interfaces.registry_api import CertificateFilters, ICertificateRegistry
from certx.core.pagination import Pagination

logger = logging.getLogger(__name__)


@dataclass
class CertificateListState:
    filters: CertificateFilters = field(default_factory=CertificateFilters)
    items: list[Certificate] = field(default_factory=list)
    pagination: Pagination = field(default_factory=Pagination)
    loading: bool = False
    error: CertxError | None = None


class CertificateListLoader:
    """
    Holds the list a screen renders.

    Filter, page and limit changes each trigger a fetch; search text goes
    through the debouncer first. Every fetch takes a sequence number and a
    response whose number is no longer the latest is dropped.
    """

    def __init__(
        self,
        registry: ICertificateRegistry,
        session: Session,
        debouncer: Debouncer | None = None,
        limit: int = 10,
    ):
        self.registry = registry
        self.session = session
        self.debouncer = debouncer or Debouncer(500)
        self.state = CertificateListState(filters=CertificateFilters(limit=limit))
        self._seq = 0
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, registry: ICertificateRegistry, session: Session, settings) -> "CertificateListLoader":
        return cls(
            registry,
            session,
            debouncer=Debouncer(settings.search_debounce_ms),
            limit=settings.default_page_limit,
        )

    # ── Filters ────────────────────────────────────────────

    def set_page(self, page: int) -> CertificateListState:
        return self._fetch(replace(self.state.filters, page=self.state.pagination.clamp(page)))

    def set_limit(self, limit: int) -> CertificateListState:
        return self._fetch(replace(self.state.filters, limit=limit, page=1))

    def set_status(self, status: CertStatus | None) -> CertificateListState:
        return self._fetch(replace(self.state.filters, status=status, page=1))

    def set_query(self, q: str | None) -> CertificateListState:
        return self._fetch(replace(self.state.filters, q=(q or "").strip() or None, page=1))

    def search(self, q: str | None) -> None:
        """Debounced ``set_query`` for keystroke-driven input."""
        self.debouncer.call(self.set_query, q)

    def reload(self) -> CertificateListState:
        return self._fetch(self.state.filters)

    # ── Fetch ──────────────────────────────────────────────

    def _fetch(self, filters: CertificateFilters) -> CertificateListState:
        with self._lock:
            self._seq += 1
            seq = self._seq
            self.state = replace(self.state, filters=filters, items=[], loading=True, error=None)

        try:
            page = self.registry.list_certificates(self.session, filters)
        except CertxError as e:
            with self._lock:
                if seq != self._seq:
                    logger.debug(f"Dropping stale list error #{seq}")
                    return self.state
                logger.warning(f"Certificate list failed: {e.message}")
                self.state = replace(self.state, loading=False, error=e)
                return self.state

        with self._lock:
            if seq != self._seq:
                logger.debug(f"Dropping stale list response #{seq} (latest #{self._seq})")
                return self.state
            self.state = replace(
                self.state,
                filters=replace(filters, page=page.pagination.page),
                items=list(page.items),
                pagination=page.pagination,
                loading=False,
            )
            return self.state
