# core/search.py
import threading
from typing import Iterable, List, Optional, Sequence

from .errors import AggregationCancelled, NetworkError
from .logger import get_logger
from .models import GameRecord

logger = get_logger(__name__)

IDLE = "idle"
LOADING = "loading"
READY = "ready"
FAILED = "failed"


def filter_games(games: Iterable[GameRecord], query: str) -> List[GameRecord]:
    """
    Live search filter. An empty query hides nameless records; otherwise
    keep records whose name contains the query as typed, ignoring case.
    """
    query = query or ""
    if not query:
        return [g for g in games if g.name]
    needle = query.casefold()
    return [g for g in games if needle in g.name.casefold()]


class GameSearchView:
    """
    Presentation state for the catalog screen: the last loaded result set,
    the load state and the user's live query.

    Changing the query only re-filters what is already loaded.
    """

    def __init__(self, aggregator):
        self.aggregator = aggregator
        self.state = IDLE
        self.error = ""
        self.query = ""
        self._games: Sequence[GameRecord] = ()

    @property
    def games(self) -> Sequence[GameRecord]:
        return self._games

    def load(self, predicate, cancel_event: Optional[threading.Event] = None) -> str:
        self.state = LOADING
        self.error = ""
        try:
            games = self.aggregator.run(predicate, cancel_event=cancel_event)
        except NetworkError as e:
            logger.error("Catalog load failed: %s", e)
            self.state = FAILED
            self.error = str(e)
            return self.state
        except AggregationCancelled:
            self.state = IDLE
            return self.state

        self._games = tuple(games)
        self.state = READY
        return self.state

    def set_query(self, text: str) -> None:
        self.query = text or ""

    def visible(self) -> List[GameRecord]:
        return filter_games(self._games, self.query)
