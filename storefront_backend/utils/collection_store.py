"""
Collection Store
Read-only adapter over the storefront MongoDB collections used by reports.

Some collections are optional: tenants created before incomes were introduced
have no ``incomes`` collection. Callers ask ``supports()`` before reading
instead of catching driver errors.
"""

import logging
from typing import Any, Dict, List, Optional

from storefront_backend.models import DatabaseInitializer

logger = logging.getLogger(__name__)


class CollectionStore:
    """Thin query surface over a PyMongo database handle"""

    def __init__(self, mongo_db):
        self.db = mongo_db
        self.initializer = DatabaseInitializer(mongo_db)

    def is_optional(self, collection_name: str) -> bool:
        return collection_name in DatabaseInitializer.OPTIONAL_COLLECTIONS

    def supports(self, collection_name: str) -> bool:
        """
        Report whether a collection can be read.

        Required collections are always supported (an empty collection reads
        as an empty list). Optional ones are supported only when they exist.
        """
        if not self.is_optional(collection_name):
            return True
        return self.initializer.validate_collection_exists(collection_name)

    def find_if_supported(
        self,
        collection_name: str,
        query: Optional[Dict[str, Any]] = None,
        projection: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Fetch matching documents, or an empty list when the collection is unsupported"""
        if not self.supports(collection_name):
            logger.debug(f"Collection '{collection_name}' unsupported, reading as empty")
            return []
        return list(self.db[collection_name].find(query or {}, projection))
