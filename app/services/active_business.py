"""
Active-business pointer with local persistence.
"""

import logging
from typing import List, Optional

from app.core.local_storage import LocalStorage
from app.schemas.business import Business

logger = logging.getLogger(__name__)

ACTIVE_BUSINESS_KEY = "activeBusinessId"


class ActiveBusinessSelector:
    """Tracks the single business currently in focus."""

    def __init__(self, storage: LocalStorage):
        self._storage = storage
        self._active: Optional[Business] = None

    @property
    def active(self) -> Optional[Business]:
        return self._active

    @property
    def active_id(self) -> Optional[str]:
        return self._active.id if self._active else None

    def restore(self, businesses: List[Business]) -> Optional[Business]:
        """
        Pick the active business after a load.

        The persisted id wins if it still exists, otherwise the first business,
        otherwise None.
        """
        saved_id = self._storage.get_item(ACTIVE_BUSINESS_KEY)
        found = next((b for b in businesses if b.id == saved_id), None) if saved_id else None
        self._set(found or (businesses[0] if businesses else None))
        return self._active

    def select(self, business: Optional[Business]) -> Optional[str]:
        """Set the pointer from a user action; returns the acknowledgment to show."""
        self._set(business)
        if business is None:
            return None
        logger.info(f"Active business set to {business.id}")
        return f"Negocio activo: {business.name}"

    def refresh(self, business: Business) -> None:
        """Keep the pointer in step with an update of the same business."""
        if self._active is not None and self._active.id == business.id:
            self._active = business

    def on_deleted(self, business_id: str, remaining: List[Business]) -> None:
        """Fall back to the first remaining business when the active one goes away."""
        if self._active is not None and self._active.id == business_id:
            self._set(remaining[0] if remaining else None)

    def _set(self, business: Optional[Business]) -> None:
        self._active = business
        # A missing business keeps the stored id; restore() skips ids that no longer exist
        if business is not None:
            self._storage.set_item(ACTIVE_BUSINESS_KEY, business.id)
