"""
Shared test fixtures for the PlantPro test suite.

Provides:
- A fresh file-backed SQLite database per test with all tables created
- A session factory wired to that database
- A factory for seeding users, species, zones, plant lots and health logs
- Bearer token headers for each role
"""

import os
import tempfile
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

# Settings are read once at import time, so the test environment has to be in
# place before anything from plantpro is imported.
os.environ.setdefault(
    "SQLALCHEMY_DATABASE_URI",
    f"sqlite+aiosqlite:///{Path(tempfile.gettempdir()) / 'plantpro-test.db'}"
)
os.environ.setdefault("SECRET_KEY", "plantpro-test-secret")
os.environ["LOG_TO_FILE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from sqlalchemy.pool import NullPool

import plantpro.api.models  # noqa: F401  (registers every table on Base.metadata)
from plantpro.api.core.database import Base, build_engine, build_session_factory
from plantpro.api.core.security import create_access_token
from plantpro.api.models import (
    AnalysisStatus,
    HealthLog,
    HealthStatus,
    PlantLot,
    PlantSpecies,
    PlantStatus,
    User,
    UserRole,
    Zone,
)
from plantpro.utils.time import utc_today, utcnow


def auth_headers(role: UserRole, user_id: int = 1) -> dict:
    """Bearer header for a user acting with ``role``"""
    token = create_access_token(data={"sub": str(user_id), "role": role.value})
    return {"Authorization": f"Bearer {token}"}


def signal(score: Optional[float] = None, disease: bool = False, issues: tuple = ()) -> dict:
    """Health-signal payload as stored in ``health_logs.ai_analysis``"""
    payload = {
        "diseaseDetected": disease,
        "detectedIssues": [
            {"type": issue, "severity": "medium", "confidence": 0.8} for issue in issues
        ],
    }
    if score is not None:
        payload["healthScore"] = score
    return payload


class PlantationFactory:
    """Inserts rows one commit at a time and returns them"""

    def __init__(self, session_factory):
        self.session_factory = session_factory
        self._sequence = 0

    def _next(self) -> int:
        self._sequence += 1
        return self._sequence

    async def _save(self, instance):
        async with self.session_factory() as session:
            session.add(instance)
            await session.commit()
            await session.refresh(instance)
        return instance

    async def user(self, role: UserRole = UserRole.FIELD_STAFF, **kwargs) -> User:
        n = self._next()
        values = {
            "email": f"user{n}@plantpro.test",
            "password_hash": "not-a-real-hash",
            "first_name": f"First{n}",
            "last_name": f"Last{n}",
            "role": role.value,
            "is_active": True,
        }
        values.update(kwargs)
        return await self._save(User(**values))

    async def species(self, name: Optional[str] = None, **kwargs) -> PlantSpecies:
        n = self._next()
        values = {
            "name": name or f"Species {n}",
            "scientific_name": f"Planta {n}",
            "growth_period_days": 90,
            "harvest_period_days": 30,
            "expected_yield_per_plant": 2.5,
            "yield_unit": "kg",
        }
        values.update(kwargs)
        return await self._save(PlantSpecies(**values))

    async def zone(self, name: Optional[str] = None, **kwargs) -> Zone:
        n = self._next()
        values = {"name": name or f"Zone {n}", "area_hectares": 1.5, "is_active": True}
        values.update(kwargs)
        return await self._save(Zone(**values))

    async def lot(self, species: PlantSpecies, zone: Zone, **kwargs) -> PlantLot:
        n = self._next()
        values = {
            "lot_number": f"LOT-{n:04d}",
            "qr_code": f"QR-{n:04d}",
            "plant_count": 100,
            "planted_date": utc_today() - timedelta(days=60),
            "status": PlantStatus.GROWING.value,
            "species_id": species.id,
            "zone_id": zone.id,
        }
        values.update(kwargs)
        return await self._save(PlantLot(**values))

    async def log(
        self,
        lot: PlantLot,
        recorder: User,
        ai_analysis: Optional[dict] = None,
        recorded_at: Optional[datetime] = None,
        **kwargs
    ) -> HealthLog:
        values = {
            "plant_lot_id": lot.id,
            "recorded_by_id": recorder.id,
            "health_status": HealthStatus.GOOD.value,
            "ai_analysis": ai_analysis,
            "analysis_status": (
                AnalysisStatus.COMPLETED.value if ai_analysis is not None else AnalysisStatus.PENDING.value
            ),
            "recorded_at": recorded_at or utcnow() - timedelta(hours=1),
        }
        values.update(kwargs)
        return await self._save(HealthLog(**values))


@pytest.fixture
async def engine(tmp_path):
    """SQLite database with all tables created, fresh for every test"""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'plantpro.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def factory(session_factory):
    return PlantationFactory(session_factory)


@pytest.fixture
def today() -> date:
    return utc_today()
