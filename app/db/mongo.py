import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from app.core.config import settings

logger = logging.getLogger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URI)
    mongodb.db = mongodb.client[settings.MONGODB_DB]

    await create_indexes(mongodb.db)
    logger.info("Connected to MongoDB: %s", settings.MONGODB_DB)

async def disconnect_from_mongo():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes."""
    await db["users"].create_index("email", unique=True)
    await db["userPreference"].create_index("user_id", unique=True)

    # Tenancy
    await db["userBusiness"].create_index("owner_uid")
    await db["userRole"].create_index([("user_uid", 1), ("business_id", 1), ("status", 1)])
    await db["userRole"].create_index("code")

    # Debt ledger
    await db["debt"].create_index([("business_id", 1), ("created_at", -1)])
    await db["debt"].create_index([("business_id", 1), ("daily_cash_snapshot_id", 1)])
    await db["debt"].create_index([("business_id", 1), ("origin_type", 1), ("origin_id", 1)])
    await db["debtPayment"].create_index([("business_id", 1), ("debt_id", 1)])

    # Peripheral stores
    await db["supplier"].create_index([("business_id", 1), ("name", 1)])
    await db["purchaseInvoice"].create_index(
        [("business_id", 1), ("supplier_id", 1), ("invoice_number", 1)]
    )

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
