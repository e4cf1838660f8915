import logging
from typing import List, Optional

from app.models.supplier import (
    SUPPLIER_CATEGORY_LABELS,
    Supplier,
    SupplierCreate,
    SupplierFilter,
    SupplierForm,
    SupplierUpdatePatch,
)
from app.models.user import UserResponse
from app.repositories.supplier_repo import SupplierRepository
from app.stores.base import ActionResult, FailureReason
from app.stores.notifications import Notifier

logger = logging.getLogger(__name__)

MSG_LOAD_ERROR = "Hubo un error al cargar los proveedores. Por favor intenta nuevamente."
MSG_CREATED = "Proveedor creado exitosamente"
MSG_CREATE_ERROR = "Hubo un error al crear el proveedor. Por favor intenta nuevamente."
MSG_UPDATED = "Proveedor actualizado exitosamente"
MSG_UPDATE_ERROR = "Hubo un error al actualizar el proveedor. Por favor intenta nuevamente."
MSG_ARCHIVED = "Proveedor archivado exitosamente"
MSG_ARCHIVE_ERROR = "Hubo un error al archivar el proveedor. Por favor intenta nuevamente."
MSG_RESTORED = "Proveedor restaurado exitosamente"
MSG_RESTORE_ERROR = "Hubo un error al restaurar el proveedor. Por favor intenta nuevamente."


class SupplierStore:
    """Suppliers of the active business, loaded once unless forced."""

    def __init__(self, repo: SupplierRepository, user: UserResponse, notifier: Notifier):
        self.repo = repo
        self.user = user
        self.notifier = notifier

        self.suppliers: List[Supplier] = []
        self.loaded = False
        self.supplier_filter = SupplierFilter.ACTIVE
        self.search_query = ""

    @staticmethod
    def categories() -> List[dict]:
        return [
            {"value": category.value, "label": label}
            for category, label in SUPPLIER_CATEGORY_LABELS.items()
        ]

    def filtered_suppliers(
        self,
        search: Optional[str] = None,
        supplier_filter: Optional[SupplierFilter] = None,
    ) -> List[Supplier]:
        search = self.search_query if search is None else search
        supplier_filter = SupplierFilter(supplier_filter or self.supplier_filter)

        filtered = list(self.suppliers)
        if supplier_filter == SupplierFilter.ACTIVE:
            filtered = [s for s in filtered if s.is_active]
        elif supplier_filter == SupplierFilter.ARCHIVED:
            filtered = [s for s in filtered if not s.is_active]

        if search:
            filtered = [s for s in filtered if s.matches(search)]
        return filtered

    def get_supplier(self, supplier_id: str) -> Optional[Supplier]:
        return next((s for s in self.suppliers if s.id == supplier_id), None)

    def _splice(self, supplier: Supplier) -> None:
        for i, existing in enumerate(self.suppliers):
            if existing.id == supplier.id:
                self.suppliers[i] = supplier
                return

    def clear_cache(self) -> None:
        self.suppliers = []
        self.loaded = False

    async def fetch_suppliers(self, force_reload: bool = False) -> ActionResult:
        if self.loaded and not force_reload:
            return ActionResult.ok(self.suppliers, from_cache=True)

        try:
            result = await self.repo.find_all()
            if not result.success:
                logger.error("Error fetching suppliers: %s", result.error)
                self.notifier.error(MSG_LOAD_ERROR)
                return ActionResult.from_schema(result, MSG_LOAD_ERROR)

            self.suppliers = result.data
            self.loaded = True
            return ActionResult.ok(self.suppliers)
        except Exception:
            logger.exception("Unexpected error fetching suppliers")
            self.notifier.error(MSG_LOAD_ERROR)
            return ActionResult.fail(FailureReason.UNEXPECTED, MSG_LOAD_ERROR)

    async def create_supplier(self, form: SupplierCreate) -> ActionResult:
        try:
            doc = {
                **form.to_fields(),
                "is_active": True,
                "archived_at": None,
                "created_by": self.user.id,
            }
            result = await self.repo.create(doc)
            if not result.success:
                logger.error("Error creating supplier: %s", result.error)
                self.notifier.error(MSG_CREATE_ERROR)
                return ActionResult.from_schema(result, MSG_CREATE_ERROR)

            self.suppliers.append(result.data)
            self.notifier.success(MSG_CREATED)
            return ActionResult.ok(result.data)
        except Exception:
            logger.exception("Unexpected error creating supplier")
            self.notifier.error(MSG_CREATE_ERROR)
            return ActionResult.fail(FailureReason.UNEXPECTED, MSG_CREATE_ERROR)

    async def _write(self, action, success_message: str, error_message: str) -> ActionResult:
        try:
            result = await action()
            if not result.success:
                logger.error("Supplier write failed: %s", result.error)
                self.notifier.error(error_message)
                return ActionResult.from_schema(result, error_message)

            self._splice(result.data)
            self.notifier.success(success_message)
            return ActionResult.ok(result.data)
        except Exception:
            logger.exception("Unexpected error writing supplier")
            self.notifier.error(error_message)
            return ActionResult.fail(FailureReason.UNEXPECTED, error_message)

    async def update_supplier(self, supplier_id: str, form: SupplierForm) -> ActionResult:
        patch = SupplierUpdatePatch(form=form)
        return await self._write(
            lambda: self.repo.update(supplier_id, patch), MSG_UPDATED, MSG_UPDATE_ERROR
        )

    async def archive_supplier(self, supplier_id: str) -> ActionResult:
        """Soft delete: the supplier stays, flagged inactive."""
        return await self._write(
            lambda: self.repo.archive(supplier_id), MSG_ARCHIVED, MSG_ARCHIVE_ERROR
        )

    async def restore_supplier(self, supplier_id: str) -> ActionResult:
        return await self._write(
            lambda: self.repo.restore(supplier_id), MSG_RESTORED, MSG_RESTORE_ERROR
        )
