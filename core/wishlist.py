# core/wishlist.py
from typing import List, Optional

from clients.firestore import FirestoreCollection

from .config import Settings
from .errors import StoreError
from .logger import get_logger
from .models import GameRecord, WishlistItem
from .storage import SqliteCollection, now_utc_iso

logger = get_logger(__name__)


def open_collection(settings: Settings, id_token: Optional[str] = None):
    """Build the document collection backing the wishlist."""
    if settings.store_backend == "firestore":
        return FirestoreCollection(
            settings.firebase_project_id,
            collection=settings.wishlist_collection,
            id_token=id_token,
            api_key=settings.firebase_api_key or None,
            timeout=settings.http_timeout,
        )
    return SqliteCollection(settings.sqlite_path, collection=settings.wishlist_collection)


class WishlistStore:
    """
    The user's wishlist on top of a document collection (add/list/delete).

    No uniqueness is enforced: adding the same game twice stores two
    documents. clear() deletes document by document, so an add that lands
    while a clear is running may survive it.
    """

    def __init__(self, collection):
        self.collection = collection

    def add(self, record: GameRecord) -> WishlistItem:
        fields = record.to_fields()
        fields["added_at"] = now_utc_iso()
        doc_id = self.collection.add(fields)
        logger.info("Added %s (%s) to wishlist as %s", record.name, record.appid, doc_id)
        return WishlistItem(doc_id=doc_id, game=record, added_at=fields["added_at"])

    def list_all(self) -> List[WishlistItem]:
        items: List[WishlistItem] = []
        for doc_id, fields in self.collection.list():
            try:
                game = GameRecord.from_fields(fields)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed wishlist document %s: %s", doc_id, e)
                continue
            items.append(
                WishlistItem(doc_id=doc_id, game=game, added_at=str(fields.get("added_at") or ""))
            )
        return items

    def clear(self) -> int:
        docs = self.collection.list()
        deleted = 0
        failures = []
        for doc_id, _ in docs:
            try:
                self.collection.delete(doc_id)
                deleted += 1
            except StoreError as e:
                logger.error("Failed to delete wishlist document %s: %s", doc_id, e)
                failures.append(doc_id)
        if failures:
            raise StoreError(
                f"Cleared {deleted} of {len(docs)} wishlist documents; "
                f"{len(failures)} could not be deleted"
            )
        logger.info("Cleared %d wishlist document(s)", deleted)
        return deleted
