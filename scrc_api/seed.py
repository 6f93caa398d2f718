"""
Seed demo members into an empty database.

    python -m scrc_api.seed
"""
import asyncio
import logging
from typing import List, Optional

from sqlalchemy import func, select

from scrc_api.config import Settings, settings as default_settings
from scrc_api.database import close_db, create_engine, create_session_factory, init_db
from scrc_api.models import Member

logger = logging.getLogger(__name__)

POSITIONS = ["President", "Vice President", "Secretary", "Member"]


def make_members(count: int, member_type: str, label: str, img_folder: str) -> List[dict]:
    return [
        {
            "type": member_type,
            "name": f"{label} {i + 1}",
            "img": f"/members/{img_folder}/{i + 1}.jpg",
            "rank": i,
            "details": {
                "phone": f"+977-98{10000000 + i}",
                "email": f"{member_type.lower()}{i + 1}@example.com",
                "organization": "SCRC",
                "position": POSITIONS[i % len(POSITIONS)],
                "since": str(2005 + (i % 20)),
            },
        }
        for i in range(count)
    ]


async def seed_members(settings: Optional[Settings] = None) -> int:
    """
    Insert demo members when the members table is empty.

    Returns:
        int: Number of members inserted (0 if members already existed)
    """
    settings = settings or default_settings
    engine = create_engine(settings.DATABASE_URL)
    try:
        await init_db(engine, settings.DATABASE_URL)
        async with create_session_factory(engine)() as session:
            existing = (await session.execute(select(func.count(Member.id)))).scalar()
            if existing:
                logger.info("Members already exist, skipping seed")
                return 0

            rows = (
                make_members(30, "Founding", "Founding Member", "respected")
                + make_members(30, "Lifetime", "Lifetime Member", "lifetime")
                + make_members(20, "helper", "Helping Member", "helpers")
            )
            session.add_all([Member(**row) for row in rows])
            await session.commit()
            logger.info(f"Seeded {len(rows)} members")
            return len(rows)
    finally:
        await close_db(engine)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    asyncio.run(seed_members())
