"""
BusinessSession - Per-user state container owning every store.

The business-scoped stores (ledger, suppliers, invoices) are bound to the
active business. Switching business invalidates them, binds fresh ones to
the new business and reloads their data in place.
"""

import asyncio
import logging
from typing import Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import settings
from app.models.user import UserResponse
from app.repositories.business_repo import BusinessRepository, UserRoleRepository
from app.repositories.debt_repo import DebtPaymentRepository, DebtRepository
from app.repositories.preference_repo import PreferenceRepository
from app.repositories.purchase_invoice_repo import PurchaseInvoiceRepository
from app.repositories.supplier_repo import SupplierRepository
from app.stores.base import ActionResult
from app.stores.business_store import BusinessStore
from app.stores.debt_ledger import DebtLedger
from app.stores.notifications import Notifier
from app.stores.purchase_invoice_store import PurchaseInvoiceStore
from app.stores.supplier_store import SupplierStore

logger = logging.getLogger(__name__)


class BusinessSession:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        user: UserResponse,
        business_id: Optional[str] = None,
        notifier: Optional[Notifier] = None,
        cache_ttl_seconds: int = settings.DEBT_CACHE_TTL_SECONDS,
    ):
        self.db = db
        self.user = user
        self.notifier = notifier or Notifier()
        self.cache_ttl_seconds = cache_ttl_seconds

        self.business = BusinessStore(
            BusinessRepository(db),
            UserRoleRepository(db),
            PreferenceRepository(db),
            user,
            self.notifier,
        )
        self.business_id: Optional[str] = None
        self.ledger: Optional[DebtLedger] = None
        self.suppliers: Optional[SupplierStore] = None
        self.invoices: Optional[PurchaseInvoiceStore] = None
        self._bind(business_id)

    def _bind(self, business_id: Optional[str]) -> None:
        self.business_id = business_id
        if business_id is None:
            self.ledger = self.suppliers = self.invoices = None
            return

        self.ledger = DebtLedger(
            DebtRepository(self.db, business_id),
            DebtPaymentRepository(self.db, business_id),
            self.user,
            self.notifier,
            cache_ttl_seconds=self.cache_ttl_seconds,
        )
        self.suppliers = SupplierStore(
            SupplierRepository(self.db, business_id), self.user, self.notifier
        )
        self.invoices = PurchaseInvoiceStore(
            PurchaseInvoiceRepository(self.db, business_id), self.ledger, self.user, self.notifier
        )

    @property
    def has_business(self) -> bool:
        return self.business_id is not None

    def invalidate(self) -> None:
        """Drop every business-scoped cache."""
        for store in (self.ledger, self.suppliers, self.invoices):
            if store is not None:
                store.clear_cache()

    async def resync(self) -> ActionResult:
        """Reload the business-scoped stores from the database."""
        if not self.has_business:
            return ActionResult.ok()

        results = [
            await self.ledger.load_debts(),
            await self.suppliers.fetch_suppliers(force_reload=True),
            await self.invoices.fetch_invoices(force_reload=True),
        ]
        failed = [r for r in results if not r.success]
        if failed:
            return failed[0]
        return ActionResult.ok()

    async def switch_business(self, business_id: str) -> ActionResult:
        result = await self.business.change_current_business(business_id)
        if not result.success:
            return result

        logger.info("User %s switched to business %s", self.user.id, business_id)
        self.invalidate()
        self._bind(business_id)
        synced = await self.resync()
        if not synced.success:
            return synced
        return result

    async def adopt_current_business(self) -> None:
        """Rebind after the business store picked a different active business."""
        current = self.business.current_business
        business_id = current.id if current else None
        if business_id != self.business_id:
            self.invalidate()
            self._bind(business_id)


class SessionRegistry:
    """Sessions by user id, owned by the application."""

    def __init__(self):
        self._sessions: Dict[str, BusinessSession] = {}
        self._lock = asyncio.Lock()

    async def get(self, db: AsyncIOMotorDatabase, user: UserResponse) -> BusinessSession:
        async with self._lock:
            session = self._sessions.get(user.id)
            if session is not None:
                return session

            stored = await PreferenceRepository(db).get_current_business(user.id)
            business_id = stored.data if stored.success else None
            session = BusinessSession(db, user, business_id)
            if business_id:
                await session.business.restore_current(business_id)
            self._sessions[user.id] = session
            return session

    def discard(self, user_id: str) -> None:
        self._sessions.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
