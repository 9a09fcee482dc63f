# core/report.py
from pathlib import Path
from typing import Iterable, List, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .logger import get_logger
from .models import GameRecord, WishlistItem

logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)

THEMES = {
    "light": {
        "page_bg": "#f5f5f5",
        "card_bg": "#ffffff",
        "card_border": "#e0e0e0",
        "text_primary": "#202124",
        "text_secondary": "#555",
        "text_muted": "#999",
        "link_color": "#1a73e8",
    },
    "dark": {
        "page_bg": "#121212",
        "card_bg": "#1E1E1E",
        "card_border": "#333333",
        "text_primary": "#F1F1F1",
        "text_secondary": "#BBBBBB",
        "text_muted": "#777777",
        "link_color": "#8AB4F8",
    },
}


def store_url(appid: int) -> str:
    return f"https://store.steampowered.com/app/{appid}/"


def _rows(games: Iterable[GameRecord]) -> List[dict]:
    return [
        {
            "appid": g.appid,
            "name": g.name,
            "image_url": g.header_image,
            "store_url": store_url(g.appid),
        }
        for g in games
    ]


def games_of(items: Sequence[WishlistItem]) -> List[GameRecord]:
    return [it.game for it in items]


def build_plaintext_listing(title: str, games: Sequence[GameRecord], empty_text: str = "") -> str:
    template = env.get_template("listing.txt")
    return template.render(title=title, games=_rows(games), empty_text=empty_text)


def build_html_listing(title: str, games: Sequence[GameRecord], theme: str = "dark") -> str:
    if theme not in THEMES:
        theme = "dark"
    template = env.get_template("listing.html")
    return template.render(title=title, games=_rows(games), colors=THEMES[theme])


def notice(message: str) -> str:
    """User-facing transient message; returned so the caller can echo it."""
    logger.info("Notice: %s", message)
    return message
