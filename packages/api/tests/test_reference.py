# This project was developed with assistance from AI tools.
"""Tests for province/district reference data seeding."""

from unittest.mock import AsyncMock, MagicMock

from db import District, Province

from fbo_api.services.reference import PROVINCES, seed_reference_data


def _session(existing):
    result = MagicMock()
    result.scalars.return_value.all.return_value = existing
    session = AsyncMock()
    session.execute = AsyncMock(return_value=result)
    session.add = MagicMock()
    return session


async def test_seed_empty_database():
    session = _session([])

    summary = await seed_reference_data(session)

    assert summary == {
        "provinces_added": len(PROVINCES),
        "districts_added": sum(len(d) for d in PROVINCES.values()),
    }
    assert session.add.call_count == 5
    session.commit.assert_awaited_once()


async def test_seed_is_idempotent_per_district():
    kigali = Province(id=1, name="Kigali City")
    kigali.districts = [District(name="Gasabo"), District(name="Kicukiro")]
    session = _session([kigali])

    summary = await seed_reference_data(session)

    assert summary["provinces_added"] == 4
    assert summary["districts_added"] == sum(len(d) for d in PROVINCES.values()) - 2
    assert {d.name for d in kigali.districts} == {"Gasabo", "Kicukiro", "Nyarugenge"}
