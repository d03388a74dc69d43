"""Database seeding script: users, a trip and its budget"""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.append(str(Path(__file__).parent.parent))

from sqlalchemy import select
from app.core.security import create_access_token
from app.database import AsyncSessionLocal, create_tables
from app.models.trip import Trip, TripMember, TripRole
from app.models.user import User
from app.services.budget_service import BudgetService


USERS_DATA = [
    {"email": "alice@example.com", "name": "Alice"},
    {"email": "bob@example.com", "name": "Bob"},
    {"email": "carol@example.com", "name": "Carol"},
    {"email": "dave@example.com", "name": "Dave"},
]


async def seed_users(session) -> list:
    """Create the demo users, reusing any that already exist"""
    users = []
    for user_data in USERS_DATA:
        result = await session.execute(
            select(User).where(User.email == user_data["email"])
        )
        user = result.scalar_one_or_none()

        if user:
            print(f"  ⏭️  User '{user_data['name']}' already exists, skipping...")
        else:
            user = User(email=user_data["email"], name=user_data["name"], is_active=True)
            session.add(user)
            await session.flush()
            print(f"  ✅ Created user '{user_data['name']}' ({user_data['email']})")

        users.append(user)
    return users


async def seed_trip(session, users: list) -> None:
    """Create a demo trip organised by the first user, with its budget"""
    organizer = users[0]
    result = await session.execute(
        select(Trip).where(Trip.title == "Lisbon long weekend")
    )
    if result.scalar_one_or_none():
        print("  ⏭️  Demo trip already exists, skipping...")
        return

    trip = Trip(title="Lisbon long weekend", organizer_id=organizer.id)
    trip.members = [
        TripMember(user_id=organizer.id, role=TripRole.ADMIN),
        *[TripMember(user_id=user.id, role=TripRole.MEMBER) for user in users[1:]],
    ]
    session.add(trip)
    await session.flush()

    budget = await BudgetService.create_for_trip(session, trip.id, organizer.id)
    print(f"  ✅ Created trip {trip.id} with budget {budget.id}")


async def main():
    """Main function to run seeding"""
    print("🌱 Seeding database...\n")

    try:
        await create_tables()
        async with AsyncSessionLocal() as session:
            users = await seed_users(session)
            await seed_trip(session, users)
            await session.commit()

        print("\n🔐 Access tokens:")
        for user in users:
            print(f"  {user.name}: {create_access_token(user.id)}")
        print("\n✨ Database seeding completed successfully!")
    except Exception as e:
        print(f"\n❌ Error seeding database: {str(e)}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
