from motor.motor_asyncio import AsyncIOMotorClient
import certifi

from .config import get_settings

settings = get_settings()

client: AsyncIOMotorClient = None
db = None


async def connect_db():
    global client, db

    if not settings.mongo_uri:
        print("⚠️  MONGO_URI not set — using in-memory lead store")
        return

    tls = settings.mongo_uri.startswith("mongodb+srv://")
    if tls:
        client = AsyncIOMotorClient(settings.mongo_uri, tls=True, tlsCAFile=certifi.where(),
                                    serverSelectionTimeoutMS=5000)
    else:
        client = AsyncIOMotorClient(settings.mongo_uri, serverSelectionTimeoutMS=5000)
    db = client[settings.mongo_db_name]
    # Create indexes
    await db.leads.create_index("lead_id", unique=True)
    await db.leads.create_index("email")
    await db.leads.create_index([("created_at", -1)])
    print(f"✅ Connected to MongoDB: {settings.mongo_db_name}")


async def close_db():
    global client, db
    if client:
        client.close()
        print("❌ MongoDB connection closed")
    client = None
    db = None


def get_db():
    return db
