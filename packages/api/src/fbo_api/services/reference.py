# This project was developed with assistance from AI tools.
"""Province and district reference data."""

import logging

from db import District, Province
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = logging.getLogger(__name__)

PROVINCES: dict[str, list[str]] = {
    "Kigali City": ["Gasabo", "Kicukiro", "Nyarugenge"],
    "Northern Province": ["Burera", "Gakenke", "Gicumbi", "Musanze", "Rulindo"],
    "Southern Province": [
        "Gisagara", "Huye", "Kamonyi", "Muhanga", "Nyamagabe", "Nyanza", "Nyaruguru", "Ruhango",
    ],
    "Eastern Province": [
        "Bugesera", "Gatsibo", "Kayonza", "Kirehe", "Ngoma", "Nyagatare", "Rwamagana",
    ],
    "Western Province": [
        "Karongi", "Ngororero", "Nyabihu", "Nyamasheke", "Rubavu", "Rusizi", "Rutsiro",
    ],
}


async def list_provinces(session: AsyncSession) -> list[Province]:
    stmt = select(Province).options(selectinload(Province.districts)).order_by(Province.name)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def seed_reference_data(session: AsyncSession) -> dict:
    """Insert any missing provinces and districts. Existing rows are left alone."""
    result = await session.execute(select(Province).options(selectinload(Province.districts)))
    existing = {p.name: p for p in result.scalars().all()}

    added_provinces = 0
    added_districts = 0
    for province_name, district_names in PROVINCES.items():
        province = existing.get(province_name)
        if province is None:
            province = Province(name=province_name, districts=[])
            session.add(province)
            added_provinces += 1
        have = {d.name for d in province.districts}
        for name in district_names:
            if name not in have:
                province.districts.append(District(name=name))
                added_districts += 1

    await session.commit()
    logger.info("Seeded %d provinces, %d districts", added_provinces, added_districts)
    return {"provinces_added": added_provinces, "districts_added": added_districts}
