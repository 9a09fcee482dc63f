# tests/test_aggregator.py
import threading
import time

import pytest

from core.aggregator import CatalogAggregator, name_contains
from core.errors import AggregationCancelled, NetworkError
from core.models import CatalogEntry, GameRecord

from conftest import FakeCatalog, FakeDetails


def test_name_contains_ignores_case():
    pred = name_contains("tropico 6")
    assert pred(CatalogEntry(1, "TROPICO 6 - Soundtrack"))
    assert not pred(CatalogEntry(2, "Tropico 5"))
    assert not pred(CatalogEntry(3))


def test_run_filters_and_enriches(tropico_catalog, tropico_record):
    details = FakeDetails({1: tropico_record, 2: GameRecord(2, "Chess", "c.png")})
    agg = CatalogAggregator(tropico_catalog, details)

    result = agg.run(name_contains("tropico 6"))

    assert result == [GameRecord(1, "Tropico 6", "img1.png")]
    assert details.requested == [1]
    assert agg.results == (tropico_record,)
    assert agg.last_run_stats == {"catalog": 2, "matched": 1, "resolved": 1, "dropped": 0}


def test_run_drops_failed_details(tropico_catalog):
    agg = CatalogAggregator(tropico_catalog, FakeDetails({}))
    assert agg.run(name_contains("tropico 6")) == []
    assert agg.last_run_stats["dropped"] == 1


def test_run_survives_partial_failures():
    names = ["Tropico", "Tropico 2", "Tropico 3", "Tropico 4", "Tropico 5"]
    catalog = FakeCatalog([CatalogEntry(i, n) for i, n in enumerate(names, start=1)])
    records = {i: GameRecord(i, n, f"{i}.png") for i, n in enumerate(names, start=1)}
    del records[2]
    details = FakeDetails(records, raise_for={4})

    result = CatalogAggregator(catalog, details).run(name_contains("tropico"))

    assert {r.appid for r in result} == {1, 3, 5}


def test_run_only_returns_matching_names():
    catalog = FakeCatalog(
        [CatalogEntry(1, "Alpha"), CatalogEntry(2, "alphabet soup"), CatalogEntry(3, "Beta")]
    )
    # the detail endpoint may rename; the filter applies to catalog names
    details = FakeDetails({i: GameRecord(i, f"Game {i}", "x.png") for i in (1, 2, 3)})

    result = CatalogAggregator(catalog, details).run(name_contains("ALPHA"))

    assert sorted(r.appid for r in result) == [1, 2]


def test_catalog_failure_propagates_without_publishing(tropico_catalog, tropico_record, failing_catalog):
    details = FakeDetails({1: tropico_record})
    agg = CatalogAggregator(tropico_catalog, details)
    agg.run(name_contains("tropico 6"))

    agg.catalog_client = failing_catalog
    with pytest.raises(NetworkError):
        agg.run(name_contains("tropico 6"))

    assert agg.results == (tropico_record,)
    assert details.requested == [1]


def test_run_twice_yields_equal_sets():
    catalog = FakeCatalog([CatalogEntry(i, f"Tropico {i}") for i in range(1, 9)])
    details = FakeDetails({i: GameRecord(i, f"Tropico {i}", f"{i}.png") for i in range(1, 9)})
    agg = CatalogAggregator(catalog, details)

    first = agg.run(name_contains("tropico"))
    second = agg.run(name_contains("tropico"))

    assert set(first) == set(second)
    assert len(first) == 8


class _SlowDetails(FakeDetails):
    def __init__(self, records, delay=0.05):
        super().__init__(records)
        self.delay = delay
        self.active = 0
        self.peak = 0

    def fetch_one(self, appid):
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            time.sleep(self.delay)
            return super().fetch_one(appid)
        finally:
            with self._lock:
                self.active -= 1


def test_max_workers_caps_concurrency():
    catalog = FakeCatalog([CatalogEntry(i, f"Tropico {i}") for i in range(1, 11)])
    details = _SlowDetails({i: GameRecord(i, f"Tropico {i}", "x.png") for i in range(1, 11)})

    result = CatalogAggregator(catalog, details, max_workers=2).run(name_contains("tropico"))

    assert len(result) == 10
    assert details.peak <= 2


def test_uncapped_run_fans_out():
    catalog = FakeCatalog([CatalogEntry(i, f"Tropico {i}") for i in range(1, 6)])
    details = _SlowDetails({i: GameRecord(i, f"Tropico {i}", "x.png") for i in range(1, 6)}, delay=0.2)

    CatalogAggregator(catalog, details).run(name_contains("tropico"))

    assert details.peak > 1


def test_cancel_before_details_discards_everything(tropico_catalog, tropico_record):
    cancel = threading.Event()
    cancel.set()
    details = FakeDetails({1: tropico_record})
    agg = CatalogAggregator(tropico_catalog, details)

    with pytest.raises(AggregationCancelled):
        agg.run(name_contains("tropico 6"), cancel_event=cancel)

    assert agg.results == ()
    assert details.requested == []


def test_cancel_mid_run_publishes_nothing():
    catalog = FakeCatalog([CatalogEntry(i, f"Tropico {i}") for i in range(1, 5)])
    details = _SlowDetails({i: GameRecord(i, f"Tropico {i}", "x.png") for i in range(1, 5)}, delay=0.3)
    agg = CatalogAggregator(catalog, details, max_workers=1)
    cancel = threading.Event()
    threading.Timer(0.1, cancel.set).start()

    with pytest.raises(AggregationCancelled):
        agg.run(name_contains("tropico"), cancel_event=cancel)

    assert agg.results == ()
    # queued lookups never started
    time.sleep(0.4)
    assert len(details.requested) < 4


def test_negative_worker_cap_is_rejected(tropico_catalog):
    with pytest.raises(ValueError):
        CatalogAggregator(tropico_catalog, FakeDetails(), max_workers=-1)


def test_zero_worker_cap_means_uncapped(tropico_catalog, tropico_record):
    agg = CatalogAggregator(tropico_catalog, FakeDetails({1: tropico_record}), max_workers=0)
    assert agg.max_workers is None
    assert agg.run(name_contains("tropico 6")) == [tropico_record]
