"""
Generic repositories over one Motor collection.

Every operation returns a ``SchemaResult`` instead of raising: driver
errors and document validation errors are caught, logged and reported
with an ``ErrorCode`` so callers can decide what to tell the user.
"""

import logging
from enum import Enum
from typing import Any, Generic, Optional, Sequence, Tuple, Type, TypeVar

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, ValidationError
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from app.models.base import MongoDocument, parse_object_id, utcnow

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=MongoDocument)
OrderBy = Sequence[Tuple[str, int]]


class ErrorCode(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    REMOTE = "remote"


class SchemaResult(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None
    code: Optional[ErrorCode] = None

    @classmethod
    def ok(cls, data: Any = None) -> "SchemaResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: ErrorCode, error: str) -> "SchemaResult":
        return cls(success=False, error=error, code=code)


class MongoRepository(Generic[ModelT]):
    """CRUD over a single collection, mapping documents to ``model``."""

    collection_name: str = ""
    model: Type[ModelT]
    # Patch classes accepted by update(); anything else is rejected
    patch_types: Tuple[type, ...] = ()
    archive_patch: Optional[type] = None
    restore_patch: Optional[type] = None

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[self.collection_name]

    def _scope(self, filter: Optional[dict] = None) -> dict:
        return dict(filter or {})

    def _to_model(self, doc: dict) -> ModelT:
        doc = dict(doc)
        doc["_id"] = str(doc["_id"])
        return self.model.model_validate(doc)

    def _new_document(self, data: dict) -> dict:
        now = utcnow()
        return {**data, "created_at": now, "updated_at": now}

    async def validate_create(self, doc: dict) -> Optional[str]:
        """Return an error message when ``doc`` conflicts with stored data."""
        return None

    async def validate_update(self, oid, patch) -> Optional[str]:
        return None

    async def find(
        self,
        filter: Optional[dict] = None,
        order_by: Optional[OrderBy] = None,
    ) -> SchemaResult:
        try:
            cursor = self.collection.find(
                self._scope(filter), sort=list(order_by) if order_by else None
            )
            docs = await cursor.to_list(length=None)
            return SchemaResult.ok([self._to_model(doc) for doc in docs])
        except ValidationError as e:
            logger.error("Invalid document in %s: %s", self.collection_name, e)
            return SchemaResult.fail(ErrorCode.VALIDATION, str(e))
        except PyMongoError as e:
            logger.error("Error reading %s: %s", self.collection_name, e)
            return SchemaResult.fail(ErrorCode.REMOTE, str(e))

    async def find_one(self, filter: dict) -> SchemaResult:
        """First matching document, or ``data=None`` when nothing matches."""
        try:
            doc = await self.collection.find_one(self._scope(filter))
            return SchemaResult.ok(self._to_model(doc) if doc else None)
        except ValidationError as e:
            logger.error("Invalid document in %s: %s", self.collection_name, e)
            return SchemaResult.fail(ErrorCode.VALIDATION, str(e))
        except PyMongoError as e:
            logger.error("Error reading %s: %s", self.collection_name, e)
            return SchemaResult.fail(ErrorCode.REMOTE, str(e))

    async def find_by_id(self, id: str) -> SchemaResult:
        oid = parse_object_id(id)
        if oid is None:
            return SchemaResult.fail(ErrorCode.NOT_FOUND, f"Invalid id: {id}")
        result = await self.find_one({"_id": oid})
        if result.success and result.data is None:
            return SchemaResult.fail(ErrorCode.NOT_FOUND, f"Document {id} not found")
        return result

    async def count(self, filter: Optional[dict] = None) -> SchemaResult:
        try:
            return SchemaResult.ok(await self.collection.count_documents(self._scope(filter)))
        except PyMongoError as e:
            logger.error("Error counting %s: %s", self.collection_name, e)
            return SchemaResult.fail(ErrorCode.REMOTE, str(e))

    async def create(self, data: dict) -> SchemaResult:
        doc = self._new_document(data)
        try:
            # Reject invalid documents before anything is written
            self.model.model_validate(doc)
        except ValidationError as e:
            return SchemaResult.fail(ErrorCode.VALIDATION, str(e))

        try:
            conflict = await self.validate_create(doc)
            if conflict:
                return SchemaResult.fail(ErrorCode.CONFLICT, conflict)
            result = await self.collection.insert_one(doc)
            doc["_id"] = result.inserted_id
            logger.debug("Created %s %s", self.collection_name, result.inserted_id)
            return SchemaResult.ok(self._to_model(doc))
        except PyMongoError as e:
            logger.error("Error creating %s: %s", self.collection_name, e)
            return SchemaResult.fail(ErrorCode.REMOTE, str(e))

    async def update(self, id: str, patch: Any) -> SchemaResult:
        """
        Apply a tagged patch to one document.

        The patch's precondition is part of the filter, so the write only
        lands when the stored document still satisfies it. A miss on an
        existing document is reported as a conflict.
        """
        if not isinstance(patch, self.patch_types):
            return SchemaResult.fail(
                ErrorCode.VALIDATION,
                f"Unsupported patch for {self.collection_name}: {type(patch).__name__}",
            )
        oid = parse_object_id(id)
        if oid is None:
            return SchemaResult.fail(ErrorCode.NOT_FOUND, f"Invalid id: {id}")

        now = utcnow()
        changes = patch.to_update(now)
        changes["updated_at"] = now
        filter = self._scope({"_id": oid, **patch.precondition()})

        try:
            conflict = await self.validate_update(oid, patch)
            if conflict:
                return SchemaResult.fail(ErrorCode.CONFLICT, conflict)
            doc = await self.collection.find_one_and_update(
                filter,
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
            if doc is None:
                exists = await self.collection.find_one(self._scope({"_id": oid}))
                if exists is None:
                    return SchemaResult.fail(ErrorCode.NOT_FOUND, f"Document {id} not found")
                return SchemaResult.fail(
                    ErrorCode.CONFLICT, f"Document {id} changed before the update was applied"
                )
            return SchemaResult.ok(self._to_model(doc))
        except ValidationError as e:
            logger.error("Update left %s %s invalid: %s", self.collection_name, id, e)
            return SchemaResult.fail(ErrorCode.VALIDATION, str(e))
        except PyMongoError as e:
            logger.error("Error updating %s %s: %s", self.collection_name, id, e)
            return SchemaResult.fail(ErrorCode.REMOTE, str(e))

    async def delete(self, id: str) -> SchemaResult:
        oid = parse_object_id(id)
        if oid is None:
            return SchemaResult.fail(ErrorCode.NOT_FOUND, f"Invalid id: {id}")
        try:
            result = await self.collection.delete_one(self._scope({"_id": oid}))
            if result.deleted_count == 0:
                return SchemaResult.fail(ErrorCode.NOT_FOUND, f"Document {id} not found")
            return SchemaResult.ok(id)
        except PyMongoError as e:
            logger.error("Error deleting %s %s: %s", self.collection_name, id, e)
            return SchemaResult.fail(ErrorCode.REMOTE, str(e))

    async def archive(self, id: str) -> SchemaResult:
        if self.archive_patch is None:
            return SchemaResult.fail(
                ErrorCode.VALIDATION, f"{self.collection_name} cannot be archived"
            )
        return await self.update(id, self.archive_patch())

    async def restore(self, id: str) -> SchemaResult:
        if self.restore_patch is None:
            return SchemaResult.fail(
                ErrorCode.VALIDATION, f"{self.collection_name} cannot be restored"
            )
        return await self.update(id, self.restore_patch())


class BusinessScopedRepository(MongoRepository[ModelT]):
    """Repository whose reads and writes are confined to one business."""

    def __init__(self, db: AsyncIOMotorDatabase, business_id: str):
        super().__init__(db)
        self.business_id = business_id

    def _scope(self, filter: Optional[dict] = None) -> dict:
        return {**(filter or {}), "business_id": self.business_id}

    def _new_document(self, data: dict) -> dict:
        doc = super()._new_document(data)
        doc["business_id"] = self.business_id
        return doc

