import asyncio
from sessionhub.models.database import init_db
from sessionhub.models.profile import Profile  # noqa: F401 (registers table)
from sessionhub.models.session import InterviewSession  # noqa: F401 (registers table)


async def create_tables():
    """Create all database tables"""
    print("Creating database tables...")
    print("Tables to create:")
    print("  - profiles")
    print("  - sessions")

    await init_db()

    print("✅ All tables created successfully!")
    print("\nDatabase schema ready for SessionHub")


if __name__ == "__main__":
    asyncio.run(create_tables())
