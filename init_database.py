"""
Database Initialization Script for PlantPro API

This script creates the database schema required by the dashboard API and
can optionally seed demo users, plant species and zones.
Run this before starting the API server.

Usage:
    python init_database.py [--seed]
"""

import argparse
import asyncio
import sys
from datetime import date
from typing import Optional

from sqlalchemy import func, inspect, select, text
from sqlalchemy.ext.asyncio import AsyncEngine

from plantpro.api.core.database import Base, build_session_factory, engine as default_engine
from plantpro.api.core.security import get_password_hash
from plantpro.api.models import PlantSpecies, User, UserRole, Zone

DEMO_PASSWORD = "admin123"

DEMO_USERS = [
    {
        "email": "admin@plantpro.com",
        "first_name": "Admin",
        "last_name": "Manager",
        "role": UserRole.MANAGER.value,
        "phone_number": "+1234567890",
    },
    {
        "email": "field@plantpro.com",
        "first_name": "Field",
        "last_name": "Staff",
        "role": UserRole.FIELD_STAFF.value,
        "phone_number": "+1234567891",
    },
    {
        "email": "analytics@plantpro.com",
        "first_name": "Analytics",
        "last_name": "User",
        "role": UserRole.ANALYTICS.value,
        "phone_number": "+1234567892",
    },
]

DEMO_SPECIES = [
    {
        "name": "Tomato",
        "scientific_name": "Solanum lycopersicum",
        "description": "High-yield cherry tomato variety",
        "growth_period_days": 120,
        "harvest_period_days": 90,
        "expected_yield_per_plant": 5.5,
        "yield_unit": "kg",
        "optimal_conditions": {
            "temperature": {"min": 18, "max": 26},
            "humidity": {"min": 60, "max": 80},
            "soilPH": {"min": 6.0, "max": 6.8},
            "sunlight": "full sun",
        },
    },
    {
        "name": "Lettuce",
        "scientific_name": "Lactuca sativa",
        "description": "Crisp head lettuce for salads",
        "growth_period_days": 75,
        "harvest_period_days": 30,
        "expected_yield_per_plant": 0.8,
        "yield_unit": "kg",
        "optimal_conditions": {
            "temperature": {"min": 15, "max": 20},
            "humidity": {"min": 70, "max": 85},
            "soilPH": {"min": 6.0, "max": 7.0},
            "sunlight": "partial shade",
        },
    },
    {
        "name": "Bell Pepper",
        "scientific_name": "Capsicum annuum",
        "description": "Sweet bell pepper, multiple colors",
        "growth_period_days": 100,
        "harvest_period_days": 60,
        "expected_yield_per_plant": 3.2,
        "yield_unit": "kg",
        "optimal_conditions": {
            "temperature": {"min": 20, "max": 28},
            "humidity": {"min": 65, "max": 75},
            "soilPH": {"min": 6.5, "max": 7.0},
            "sunlight": "full sun",
        },
    },
]

SOIL_TESTED_ON = date(2025, 1, 15).isoformat()

DEMO_ZONES = [
    {
        "name": "North Field",
        "description": "Main cultivation area in the northern section",
        "area_hectares": 10.5,
        "coordinates": {
            "latitude": 6.9271,
            "longitude": 79.8612,
            "boundaries": [
                {"lat": 6.9271, "lng": 79.8612},
                {"lat": 6.9281, "lng": 79.8622},
                {"lat": 6.9281, "lng": 79.8632},
                {"lat": 6.9271, "lng": 79.8632},
            ],
        },
        "soil_data": {
            "type": "clay loam",
            "pH": 6.5,
            "nutrients": {"nitrogen": 45, "phosphorus": 30, "potassium": 55},
            "lastTested": SOIL_TESTED_ON,
        },
    },
    {
        "name": "South Field",
        "description": "Secondary growing area with greenhouse facilities",
        "area_hectares": 8.25,
        "coordinates": {"latitude": 6.9171, "longitude": 79.8512},
        "soil_data": {
            "type": "sandy loam",
            "pH": 6.8,
            "nutrients": {"nitrogen": 40, "phosphorus": 35, "potassium": 50},
            "lastTested": SOIL_TESTED_ON,
        },
    },
    {
        "name": "East Greenhouse",
        "description": "Climate-controlled greenhouse for sensitive crops",
        "area_hectares": 2.0,
        "coordinates": {"latitude": 6.9371, "longitude": 79.8712},
        "soil_data": {
            "type": "potting mix",
            "pH": 6.2,
            "nutrients": {"nitrogen": 60, "phosphorus": 45, "potassium": 65},
            "lastTested": SOIL_TESTED_ON,
        },
    },
]


async def seed_demo_data(engine: AsyncEngine) -> dict[str, int]:
    """
    Insert demo users, species and zones

    Each table is only seeded while it is empty, so running the script twice
    does not create duplicates.

    Returns:
        Number of rows created per table
    """
    session_factory = build_session_factory(engine)
    created = {"users": 0, "plant_species": 0, "zones": 0}

    async with session_factory() as session:
        if not await session.scalar(select(func.count(User.id))):
            password_hash = get_password_hash(DEMO_PASSWORD)
            for user_data in DEMO_USERS:
                session.add(User(password_hash=password_hash, is_active=True, **user_data))
                print(f"      - user {user_data['email']} ({user_data['role']})")
            created["users"] = len(DEMO_USERS)

        if not await session.scalar(select(func.count(PlantSpecies.id))):
            for species_data in DEMO_SPECIES:
                session.add(PlantSpecies(**species_data))
                print(f"      - plant species {species_data['name']}")
            created["plant_species"] = len(DEMO_SPECIES)

        if not await session.scalar(select(func.count(Zone.id))):
            for zone_data in DEMO_ZONES:
                session.add(Zone(is_active=True, **zone_data))
                print(f"      - zone {zone_data['name']}")
            created["zones"] = len(DEMO_ZONES)

        await session.commit()

    return created


async def init_database(engine: Optional[AsyncEngine] = None, seed: bool = False) -> bool:
    """Initialize database schema"""
    engine = engine or default_engine

    print("=" * 60)
    print("PlantPro Database Initialization")
    print("=" * 60)
    print()

    # Test database connection
    print("1. Testing database connection...")
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            print(f"   ✓ Connected ({engine.dialect.name})")
    except Exception as e:
        print(f"   ✗ Database connection failed: {e}")
        print()
        print("Please ensure:")
        print("  1. Docker services are running: docker-compose up -d")
        print("  2. PostgreSQL is accessible at the configured POSTGRES_HOST")
        print("  3. Your .env file is configured correctly")
        return False

    print()

    # Create tables
    print("2. Creating database tables...")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            print("   ✓ Created missing tables")
    except Exception as e:
        print(f"   ✗ Failed to create tables: {e}")
        return False

    print()

    # Verify tables
    print("3. Verifying tables...")
    try:
        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        missing = sorted(set(Base.metadata.tables) - set(tables))
        if missing:
            print(f"   ✗ Missing tables: {', '.join(missing)}")
            return False
        print(f"   ✓ Found {len(tables)} tables:")
        for table in sorted(tables):
            print(f"      - {table}")
    except Exception as e:
        print(f"   ✗ Failed to verify tables: {e}")
        return False

    if seed:
        print()
        print("4. Seeding demo data...")
        try:
            created = await seed_demo_data(engine)
            print(f"   ✓ Seeded {sum(created.values())} rows")
        except Exception as e:
            print(f"   ✗ Failed to seed demo data: {e}")
            return False

    print()
    print("=" * 60)
    print("Database initialization completed successfully!")
    print("=" * 60)
    print()
    print("Next steps:")
    print("  1. Start the API server: uvicorn plantpro.api.main:app --reload")
    print("  2. Run tests: pytest")
    print()

    return True


async def main(seed: bool) -> bool:
    try:
        return await init_database(seed=seed)
    finally:
        await default_engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the PlantPro database schema")
    parser.add_argument("--seed", action="store_true", help="Insert demo users, species and zones")
    args = parser.parse_args()

    result = asyncio.run(main(args.seed))
    sys.exit(0 if result else 1)
