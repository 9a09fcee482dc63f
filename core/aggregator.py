# core/aggregator.py
import threading
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional, Tuple

from .errors import AggregationCancelled
from .logger import get_logger
from .models import CatalogEntry, GameRecord

logger = get_logger(__name__)

Predicate = Callable[[CatalogEntry], bool]

# How often a waiting run re-checks its cancel event
CANCEL_POLL_SECONDS = 0.1


def name_contains(substring: str) -> Predicate:
    """Case-insensitive substring match against the catalog entry name."""
    needle = substring.casefold()

    def predicate(entry: CatalogEntry) -> bool:
        return needle in (entry.name or "").casefold()

    return predicate


class CatalogAggregator:
    """
    Filters the full catalog and enriches every match with a detail lookup.

    The clients are injected so tests can substitute fakes. Results are
    published as one immutable tuple per successful run; readers of
    ``results`` never observe a half-built set.
    """

    def __init__(self, catalog_client, detail_client, max_workers: Optional[int] = None):
        self.catalog_client = catalog_client
        self.detail_client = detail_client
        if max_workers is not None and max_workers < 0:
            raise ValueError(f"max_workers must not be negative, got {max_workers}")
        # 0 or None: one worker per match
        self.max_workers = max_workers or None
        self._results: Tuple[GameRecord, ...] = ()
        self.last_run_stats: Dict[str, int] = {}

    @property
    def results(self) -> Tuple[GameRecord, ...]:
        return self._results

    def _fetch_detail(self, entry: CatalogEntry) -> Optional[GameRecord]:
        try:
            return self.detail_client.fetch_one(entry.appid)
        except Exception as e:
            logger.warning("Detail lookup for %s (%s) raised: %s", entry.appid, entry.name, e)
            return None

    def run(
        self,
        predicate: Predicate,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[GameRecord]:
        # NetworkError from the catalog propagates; previous results stay published
        entries = self.catalog_client.fetch_all()
        self._check_cancel(cancel_event)

        matches = [e for e in entries if predicate(e)]
        logger.info("Catalog: %d entries, %d match the filter", len(entries), len(matches))

        collected: List[GameRecord] = []
        if matches:
            workers = len(matches)
            if self.max_workers:
                workers = min(workers, self.max_workers)

            executor = ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="detail_fetch"
            )
            try:
                pending = {executor.submit(self._fetch_detail, m) for m in matches}
                while pending:
                    self._check_cancel(cancel_event)
                    done, pending = wait(
                        pending,
                        timeout=CANCEL_POLL_SECONDS if cancel_event else None,
                        return_when=FIRST_COMPLETED,
                    )
                    for future in done:
                        record = future.result()
                        if record is not None:
                            collected.append(record)
                self._check_cancel(cancel_event)
            finally:
                # Cancelled runs leave in-flight requests to finish on their own
                executor.shutdown(wait=False, cancel_futures=True)

        dropped = len(matches) - len(collected)
        if dropped:
            logger.info("Dropped %d match(es) without usable details", dropped)

        self.last_run_stats = {
            "catalog": len(entries),
            "matched": len(matches),
            "resolved": len(collected),
            "dropped": dropped,
        }
        self._results = tuple(collected)
        return list(collected)

    @staticmethod
    def _check_cancel(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Aggregation run cancelled; discarding results")
            raise AggregationCancelled("aggregation run cancelled")
