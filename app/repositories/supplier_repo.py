from typing import Optional

from app.models.supplier import (
    Supplier,
    SupplierArchivePatch,
    SupplierRestorePatch,
    SupplierUpdatePatch,
)
from app.repositories.base import BusinessScopedRepository, SchemaResult


class SupplierRepository(BusinessScopedRepository[Supplier]):
    """Suppliers of one business. Names are unique within the business."""

    collection_name = "supplier"
    model = Supplier
    patch_types = (SupplierUpdatePatch, SupplierArchivePatch, SupplierRestorePatch)
    archive_patch = SupplierArchivePatch
    restore_patch = SupplierRestorePatch

    async def _name_taken(self, name: str, exclude_id=None) -> bool:
        filter = self._scope({"name": name})
        if exclude_id is not None:
            filter["_id"] = {"$ne": exclude_id}
        return await self.collection.find_one(filter) is not None

    async def validate_create(self, doc: dict) -> Optional[str]:
        if await self._name_taken(doc["name"]):
            return f"A supplier named '{doc['name']}' already exists"
        return None

    async def validate_update(self, oid, patch) -> Optional[str]:
        if isinstance(patch, SupplierUpdatePatch) and await self._name_taken(patch.form.name, oid):
            return f"A supplier named '{patch.form.name}' already exists"
        return None

    async def find_all(self) -> SchemaResult:
        return await self.find(order_by=[("name", 1)])
