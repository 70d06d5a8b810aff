# storehours/db/base.py

"""
This file imports all the ORM models so Alembic can discover them.
Whenever you add a new model, import it here.
"""
from storehours.db.models.merchant import Merchant
from storehours.db.models.schedule import MerchantOpeningHour, MerchantModeSchedule, MerchantSpecialHour
from storehours.db.session import engine, Base

async def init_db():
    """Initialize database by creating all tables"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
