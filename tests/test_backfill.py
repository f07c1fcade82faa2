from decimal import Decimal

import pytest

from swiss_travel.models import Activity, Destination, Hotel
from swiss_travel.services import backfill as backfill_svc
from swiss_travel.services.backfill import backfill_embeddings
from swiss_travel.services.embeddings import TASK_DOCUMENT

from conftest import FakeCatalog, FakeEmbeddings


@pytest.fixture
def catalog():
    zermatt = Destination(id=1, name="Zermatt", region="Valais", description="Matterhorn village.",
                          description_embedding=[1.0, 0.0, 0.0])
    geneva = Destination(id=2, name="Geneva", region="Lake Geneva", description="City on the lake.",
                         description_embedding=[0.0, 1.0, 0.0])
    lugano = Destination(id=3, name="Lugano", region="Ticino", description="Italian-speaking lakeside town.")
    return {
        "destinations": FakeCatalog([zermatt, geneva, lugano]),
        "hotels": FakeCatalog([]),
        "activities": FakeCatalog([]),
    }


async def test_only_missing_rows_are_embedded(catalog):
    provider = FakeEmbeddings(default=[0.2, 0.3, 0.4])

    stats = await backfill_embeddings(**catalog, provider=provider)

    assert provider.calls == ["Lugano Ticino. Italian-speaking lakeside town."]
    assert provider.task_types == [TASK_DOCUMENT]
    assert catalog["destinations"].updates == [(3, [0.2, 0.3, 0.4])]
    assert stats.destinations == 1 and stats.embedded == 1 and stats.failed == 0
    assert all(r.description_embedding is not None for r in catalog["destinations"].rows.values())


async def test_second_run_makes_no_writes(catalog):
    provider = FakeEmbeddings()
    await backfill_embeddings(**catalog, provider=provider)
    catalog["destinations"].updates.clear()

    stats = await backfill_embeddings(**catalog, provider=provider)

    assert catalog["destinations"].updates == []
    assert stats.embedded == 0
    assert len(provider.calls) == 1


async def test_hotel_and_activity_text_uses_destination_name():
    interlaken = Destination(id=5, name="Interlaken", region="Bernese Oberland", description="Adventure hub.",
                             description_embedding=[1.0, 0.0, 0.0])
    hotels = FakeCatalog([Hotel(id=1, destination_id=5, destination=interlaken, name="Victoria-Jungfrau",
                                price_per_night=Decimal("650"), description="Belle Epoque grand hotel.")])
    activities = FakeCatalog([Activity(id=1, destination_id=5, destination=interlaken, name="Paragliding",
                                       season="Summer", description="Tandem flights over the lakes.")])
    provider = FakeEmbeddings()

    stats = await backfill_embeddings(FakeCatalog([interlaken]), hotels, activities, provider=provider)

    assert provider.calls == [
        "Victoria-Jungfrau in Interlaken. Belle Epoque grand hotel.",
        "Paragliding in Interlaken. Tandem flights over the lakes.",
    ]
    assert (stats.hotels, stats.activities) == (1, 1)


async def test_embedding_failure_is_skipped_not_fatal():
    rows = [
        Destination(id=1, name="Bern", region="Bern", description="Capital."),
        Destination(id=2, name="Basel", region="Basel", description="Art fair."),
    ]
    destinations = FakeCatalog(rows)
    provider = FakeEmbeddings(fail_on={"Bern Bern. Capital."})

    stats = await backfill_embeddings(destinations, FakeCatalog([]), FakeCatalog([]), provider=provider)

    assert stats.failed == 1
    assert stats.destinations == 1
    assert [u[0] for u in destinations.updates] == [2]
    assert rows[0].description_embedding is None


async def test_failed_write_is_counted():
    class ReadOnlyCatalog(FakeCatalog):
        async def update_embedding(self, item_id, vector):
            return False

    stats = await backfill_embeddings(
        ReadOnlyCatalog([Destination(id=1, name="Chur", region="Graubünden", description="Oldest town.")]),
        FakeCatalog([]), FakeCatalog([]),
        provider=FakeEmbeddings(),
    )

    assert (stats.destinations, stats.failed) == (0, 1)


async def test_startup_backfill_runs_once(monkeypatch):
    calls = []

    async def fake_backfill():
        calls.append(1)
        return backfill_svc.BackfillStats()

    monkeypatch.setattr(backfill_svc, "backfill_embeddings", fake_backfill)
    monkeypatch.setattr(backfill_svc, "_startup_done", False)

    first = await backfill_svc.run_startup_backfill()
    second = await backfill_svc.run_startup_backfill()

    assert first is not None and second is None
    assert calls == [1]


async def test_startup_backfill_logs_unexpected_errors(monkeypatch):
    async def broken():
        raise RuntimeError("model download failed")

    monkeypatch.setattr(backfill_svc, "backfill_embeddings", broken)
    monkeypatch.setattr(backfill_svc, "_startup_done", False)

    assert await backfill_svc.run_startup_backfill() is None
