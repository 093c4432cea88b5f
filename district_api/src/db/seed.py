"""
Database seeding utilities for demo reference data.

Seeds:
- One district (Rawalpindi) with two clusters
- Schools in each cluster with enrolment/staffing figures
- One account per role: CEO, DEO, DDEO, AEO per cluster, a head teacher and
  a teacher per school (password: "password123")

Re-running is safe: rows are matched on their unique code / phone number.

Usage:
  python -m src.db.run_migrations upgrade head
  python -m src.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Tuple
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.hierarchy import Role
from src.core.security import get_password_hash
from src.db.session import get_async_session

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

# (cluster code, cluster name, [(school code, school name, students, teachers)])
_CLUSTERS: List[Tuple[str, str, List[Tuple[str, str, int, int]]]] = [
    (
        "RWP-C01",
        "Chakra Cluster",
        [
            ("RWP-S001", "GGPS CHAKRA", 240, 9),
            ("RWP-S002", "GES JAWA", 310, 12),
            ("RWP-S003", "GBPS DHOKE ZIARAT", 180, 7),
        ],
    ),
    (
        "RWP-C02",
        "Carriage Factory Cluster",
        [
            ("RWP-S004", "GGPS CARRIAGE FACTORY", 275, 10),
            ("RWP-S005", "GPS DHAMIAL", 150, 6),
        ],
    ),
]


# PUBLIC_INTERFACE
async def seed_all() -> None:
    """
    Seed the database with demo organisation data and staff accounts.

    This function:
      - Creates or retrieves the district, its clusters and schools
      - Creates one user per role, scoped to the seeded jurisdiction
    """
    async for session in get_async_session():
        district_id = await _upsert_by_code(
            session, "districts", "uq_districts_code", {"name": "Rawalpindi", "code": "RWP"}
        )
        hashed = get_password_hash(DEMO_PASSWORD)
        await _ensure_user(session, hashed, "District CEO", "03000000001", Role.CEO, district_id=district_id)
        await _ensure_user(session, hashed, "District DEO", "03000000002", Role.DEO, district_id=district_id)
        await _ensure_user(session, hashed, "District DDEO", "03000000003", Role.DDEO, district_id=district_id)

        phone = 3000000100
        for cluster_code, cluster_name, schools in _CLUSTERS:
            cluster_id = await _upsert_by_code(
                session,
                "clusters",
                "uq_clusters_code",
                {"name": cluster_name, "code": cluster_code, "district_id": str(district_id)},
            )
            phone += 1
            await _ensure_user(
                session, hashed, f"AEO {cluster_name}", f"0{phone}", Role.AEO,
                district_id=district_id, cluster_id=cluster_id,
            )
            for school_code, school_name, students, teachers in schools:
                school_id = await _upsert_by_code(
                    session,
                    "schools",
                    "uq_schools_code",
                    {
                        "name": school_name,
                        "code": school_code,
                        "cluster_id": str(cluster_id),
                        "district_id": str(district_id),
                        "total_students": students,
                        "present_students": int(students * 0.9),
                        "total_teachers": teachers,
                        "present_teachers": teachers - 1,
                    },
                )
                scope = dict(
                    district_id=district_id, cluster_id=cluster_id, school_id=school_id, school_name=school_name
                )
                phone += 1
                await _ensure_user(session, hashed, f"Head Teacher {school_name}", f"0{phone}", Role.HEAD_TEACHER, **scope)
                phone += 1
                await _ensure_user(session, hashed, f"Teacher {school_name}", f"0{phone}", Role.TEACHER, **scope)

        await session.commit()
        logger.info("Seeded demo district, clusters, schools and users")


async def _upsert_by_code(session: AsyncSession, table: str, constraint: str, values: dict) -> UUID:
    """Insert a row keyed by its unique code unless it exists; return its id."""
    columns = ", ".join(values)
    params = ", ".join(f":{k}" for k in values)
    await session.execute(
        text(
            f"""
            INSERT INTO {table} ({columns})
            VALUES ({params})
            ON CONFLICT ON CONSTRAINT {constraint} DO NOTHING
            """
        ),
        values,
    )
    res = await session.execute(text(f"SELECT id FROM {table} WHERE code = :code"), {"code": values["code"]})
    return res.scalar_one()


async def _ensure_user(
    session: AsyncSession,
    hashed_password: str,
    name: str,
    phone_number: str,
    role: Role,
    *,
    district_id: UUID | None = None,
    cluster_id: UUID | None = None,
    school_id: UUID | None = None,
    school_name: str | None = None,
) -> None:
    await session.execute(
        text(
            """
            INSERT INTO users (name, phone_number, hashed_password, role, status,
                               school_id, school_name, cluster_id, district_id)
            VALUES (:name, :phone, :hash, :role, 'active',
                    :school_id, :school_name, :cluster_id, :district_id)
            ON CONFLICT ON CONSTRAINT uq_users_phone_number DO NOTHING
            """
        ),
        {
            "name": name,
            "phone": phone_number,
            "hash": hashed_password,
            "role": role.value,
            "school_id": str(school_id) if school_id else None,
            "school_name": school_name,
            "cluster_id": str(cluster_id) if cluster_id else None,
            "district_id": str(district_id) if district_id else None,
        },
    )


if __name__ == "__main__":
    asyncio.run(seed_all())
