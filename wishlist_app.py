# wishlist_app.py
import argparse
import os
import signal
import sys
import threading
from typing import List, Optional

from clients import make_session
from clients.firebase_auth import AuthSession, FirebaseAuthClient
from clients.steam_catalog import SteamCatalogClient
from clients.steam_store import SteamStoreClient
from core.aggregator import CatalogAggregator, name_contains
from core.config import Settings, load_settings
from core.errors import AuthError, StoreError
from core.logger import get_logger
from core.report import build_html_listing, build_plaintext_listing, games_of, notice
from core.search import FAILED, IDLE, GameSearchView
from core.wishlist import WishlistStore, open_collection

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_FATAL = 2
EXIT_CANCELLED = 130


def build_aggregator(settings: Settings, session=None) -> CatalogAggregator:
    session = session or make_session(settings.user_agent)
    catalog = SteamCatalogClient(
        session=session, base_url=settings.steam_api_url, timeout=settings.http_timeout
    )
    return CatalogAggregator(
        catalog,
        build_detail_client(settings, session),
        max_workers=settings.detail_max_workers or None,
    )


def build_detail_client(settings: Settings, session=None) -> SteamStoreClient:
    return SteamStoreClient(
        session=session or make_session(settings.user_agent),
        base_url=settings.steam_store_url,
        timeout=settings.http_timeout,
        max_attempts=settings.detail_max_attempts,
        language=settings.store_language,
        country=settings.store_country,
    )


def authenticate(settings: Settings, email: str, password: str) -> Optional[AuthSession]:
    """
    Sign-in gate in front of the catalog and the wishlist. Without a
    configured API key there is nothing to sign in to.
    """
    if not settings.firebase_api_key:
        logger.debug("FIREBASE_API_KEY not set; continuing without sign-in.")
        return None
    if not email or not password:
        raise AuthError(
            "Sign-in requires --email and --password "
            "(or FIREBASE_EMAIL / FIREBASE_PASSWORD).",
            code="MISSING_CREDENTIALS",
        )
    client = FirebaseAuthClient(settings.firebase_api_key, timeout=settings.http_timeout)
    return client.sign_in(email, password)


def _emit(text: str) -> None:
    sys.stdout.write(text if text.endswith("\n") else text + "\n")


def cmd_search(settings: Settings, args) -> int:
    view = GameSearchView(build_aggregator(settings))
    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda *_: cancel.set())
    try:
        state = view.load(name_contains(settings.title_filter), cancel_event=cancel)
    finally:
        signal.signal(signal.SIGINT, previous)

    if state == IDLE:
        _emit(notice("Search cancelled."))
        return EXIT_CANCELLED
    if state == FAILED:
        _emit(notice(f"Failed to load games: {view.error}"))
        return EXIT_FAILED

    view.set_query(args.query or "")
    _emit(build_plaintext_listing("Steam Games", view.visible(), empty_text="No games match."))
    return EXIT_OK


def cmd_add(settings: Settings, args, store: WishlistStore) -> int:
    record = build_detail_client(settings).fetch_one(args.appid)
    if record is None:
        _emit(notice(f"No store details for app {args.appid}; nothing added."))
        return EXIT_FAILED
    try:
        store.add(record)
    except StoreError as e:
        logger.error("Wishlist add failed: %s", e)
        _emit(notice("Failed to add game to your wishlist."))
        return EXIT_FAILED
    _emit(notice("Game added to your wishlist!"))
    return EXIT_OK


def cmd_wishlist(settings: Settings, args, store: WishlistStore) -> int:
    try:
        items = store.list_all()
    except StoreError as e:
        logger.error("Wishlist load failed: %s", e)
        _emit(notice("Failed to load wishlist"))
        return EXIT_FAILED

    games = games_of(items)
    _emit(build_plaintext_listing("My Wishlist", games, empty_text="Your wishlist is empty."))
    if args.html:
        try:
            with open(args.html, "w", encoding="utf-8") as f:
                f.write(build_html_listing("My Wishlist", games, theme=settings.export_theme))
        except OSError as e:
            logger.error("Wishlist export to %s failed: %s", args.html, e)
            _emit(notice(f"Failed to export wishlist to {args.html}"))
            return EXIT_FAILED
        _emit(notice(f"Wishlist exported to {args.html}"))
    return EXIT_OK


def cmd_clear(settings: Settings, args, store: WishlistStore) -> int:
    try:
        count = store.clear()
    except StoreError as e:
        logger.error("Wishlist clear failed: %s", e)
        _emit(notice("Failed to clear wishlist"))
        return EXIT_FAILED
    _emit(notice(f"Wishlist cleared ({count} removed)."))
    return EXIT_OK


def cmd_register(settings: Settings, args) -> int:
    try:
        client = FirebaseAuthClient(settings.firebase_api_key, timeout=settings.http_timeout)
        client.register(args.email, args.password)
    except AuthError as e:
        logger.error("Registration failed: %s", e)
        _emit(notice("Registration failed"))
        return EXIT_FAILED
    _emit(notice("Registered successfully"))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="steam-wishlist",
        description="Browse filtered Steam games and keep a wishlist.",
    )
    parser.add_argument("--email", default=os.getenv("FIREBASE_EMAIL", ""))
    parser.add_argument("--password", default=os.getenv("FIREBASE_PASSWORD", ""))
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("search", help="load the filtered catalog and search it")
    p.add_argument("query", nargs="?", default="")

    p = sub.add_parser("add", help="add a game to the wishlist by app id")
    p.add_argument("appid", type=int)

    p = sub.add_parser("wishlist", help="show the wishlist")
    p.add_argument("--html", metavar="PATH", help="also export it as an HTML page")

    sub.add_parser("clear", help="delete every wishlist entry")
    sub.add_parser("register", help="create an account")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()

    if args.command == "register":
        return cmd_register(settings, args)

    try:
        auth = authenticate(settings, args.email, args.password)
    except AuthError as e:
        logger.error("Sign-in failed: %s", e)
        _emit(notice("Login failed"))
        return EXIT_FAILED

    if args.command == "search":
        return cmd_search(settings, args)

    try:
        store = WishlistStore(open_collection(settings, id_token=auth.id_token if auth else None))
    except StoreError as e:
        logger.error("Wishlist store unavailable: %s", e)
        _emit(notice("Wishlist store unavailable"))
        return EXIT_FAILED

    handlers = {"add": cmd_add, "wishlist": cmd_wishlist, "clear": cmd_clear}
    return handlers[args.command](settings, args, store)


def cli() -> None:
    try:
        raise SystemExit(main())
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        raise SystemExit(EXIT_FATAL)


if __name__ == "__main__":
    cli()
