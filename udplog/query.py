"""Translate one incoming query into a read against the retained-log store."""

import logging
from typing import List, Optional

from .metrics import QUERIES_TOTAL
from .store import RetainedLogStore

logger = logging.getLogger(__name__)


class QueryService:
    """Routes a query to ``snapshot`` or ``search`` on the store.

    Safe to call concurrently from any number of request threads; the store
    serializes access and returns a fresh list, so no lock is held once
    ``run`` returns.
    """

    def __init__(self, store: RetainedLogStore):
        self.store = store

    def run(self, term: Optional[str] = None) -> List[str]:
        """Return retained records, oldest first.

        An absent or empty term returns every retained record; any other term
        returns the records containing it case-insensitively.
        """
        if not term:
            QUERIES_TOTAL.labels(kind='snapshot').inc()
            return self.store.snapshot()

        QUERIES_TOTAL.labels(kind='search').inc()
        records = self.store.search(term)
        logger.debug('Search %r matched %d records', term, len(records))
        return records
