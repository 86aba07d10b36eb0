"""
Repository tests against in-memory SQLite
"""

import pytest

from cylinder_monitor.errors import NotFoundError, StorageError
from tests.fixtures.database_fixtures import make_measurement


class TestCylinderRepository:
    """Test cylinder persistence"""

    async def test_insert_is_inactive(self, cylinder_repo):
        cylinder_id = await cylinder_repo.insert("Butane", 5.0, 10.0)

        cylinder = await cylinder_repo.get_by_id(cylinder_id)

        assert cylinder.name == "Butane"
        assert cylinder.is_active is False
        assert await cylinder_repo.get_active() is None

    async def test_get_all_newest_first(self, cylinder_repo):
        older = await cylinder_repo.insert("Old", 5.0, 10.0, created_at=1000)
        newer = await cylinder_repo.insert("New", 5.0, 10.0, created_at=2000)

        cylinders = await cylinder_repo.get_all()

        assert [c.id for c in cylinders] == [newer, older]

    async def test_set_active_is_exclusive(self, cylinder_repo):
        first = await cylinder_repo.insert("First", 5.0, 10.0)
        second = await cylinder_repo.insert("Second", 5.0, 10.0)
        await cylinder_repo.set_active(first)

        activated = await cylinder_repo.set_active(second)

        assert activated.id == second and activated.is_active
        cylinders = await cylinder_repo.get_all()
        assert [c.id for c in cylinders if c.is_active] == [second]

    async def test_set_active_unknown(self, cylinder_repo):
        keep = await cylinder_repo.insert("Keep", 5.0, 10.0)
        await cylinder_repo.set_active(keep)

        with pytest.raises(NotFoundError):
            await cylinder_repo.set_active(404)

        assert (await cylinder_repo.get_active()).id == keep

    async def test_delete_inactive_removes_measurements(self, cylinder_repo, measurement_repo):
        old = await cylinder_repo.insert("Old", 5.0, 10.0)
        current = await cylinder_repo.insert("Current", 5.0, 10.0)
        await cylinder_repo.set_active(current)
        await measurement_repo.insert(make_measurement(old, 1000, 12.0))
        await measurement_repo.insert(make_measurement(current, 1000, 12.0))

        deleted = await cylinder_repo.delete_inactive()

        assert deleted == 1
        assert await cylinder_repo.get_by_id(old) is None
        assert await measurement_repo.count() == 1
        assert await measurement_repo.count(current) == 1


class TestMeasurementRepository:
    """Test measurement persistence and queries"""

    @pytest.fixture
    async def cylinder_id(self, cylinder_repo):
        return await cylinder_repo.insert("Test", 5.0, 10.0)

    async def test_insert_returns_id(self, measurement_repo, cylinder_id):
        measurement_id = await measurement_repo.insert(make_measurement(cylinder_id, 1000, 12.0))

        stored = await measurement_repo.get_all()

        assert stored[0].id == measurement_id
        assert stored[0].fuel_kilograms == pytest.approx(7.0)

    async def test_insert_many(self, measurement_repo, cylinder_id):
        batch = [make_measurement(cylinder_id, t, 12.0, is_historical=True) for t in (3, 1, 2)]

        inserted = await measurement_repo.insert_many(batch)

        assert inserted == 3
        assert [m.timestamp for m in await measurement_repo.get_all()] == [1, 2, 3]

    async def test_insert_many_empty(self, measurement_repo):
        assert await measurement_repo.insert_many([]) == 0

    async def test_get_last_n_newest_first(self, measurement_repo, cylinder_id):
        for t in (1000, 2000, 3000, 4000, 5000):
            await measurement_repo.insert(make_measurement(cylinder_id, t, 12.0))

        last = await measurement_repo.get_last_n(cylinder_id, 3)

        assert [m.timestamp for m in last] == [5000, 4000, 3000]

    async def test_get_between_inclusive(self, measurement_repo, cylinder_id):
        for t in (1000, 2000, 3000):
            await measurement_repo.insert(make_measurement(cylinder_id, t, 12.0))

        window = await measurement_repo.get_between(1000, 2000)

        assert [m.timestamp for m in window] == [1000, 2000]

    async def test_delete_by_id(self, measurement_repo, cylinder_id):
        measurement_id = await measurement_repo.insert(make_measurement(cylinder_id, 1000, 12.0))

        assert await measurement_repo.delete_by_id(measurement_id) is True
        assert await measurement_repo.delete_by_id(measurement_id) is False

    async def test_latest_real_time_skips_historical(self, measurement_repo, cylinder_id):
        await measurement_repo.insert(make_measurement(cylinder_id, 1000, 12.0))
        await measurement_repo.insert(make_measurement(cylinder_id, 9000, 11.0, is_historical=True))

        latest = await measurement_repo.get_latest_real_time(cylinder_id)

        assert latest.timestamp == 1000

    async def test_unknown_cylinder_wrapped_as_storage_error(self, measurement_repo):
        with pytest.raises(StorageError):
            await measurement_repo.insert(make_measurement(999, 1000, 12.0))
