# core/models.py
from dataclasses import dataclass


@dataclass
class CatalogEntry:
    """
    One row of the upstream app list. Only lives inside an aggregation run;
    name and header_image may still be empty placeholders.
    """
    appid: int
    name: str = ""
    header_image: str = ""


@dataclass(frozen=True)
class GameRecord:
    """
    A catalog entry after a successful detail lookup. Name and cover image
    are always resolved.
    """
    appid: int
    name: str
    header_image: str

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError(f"GameRecord {self.appid} needs a non-empty name")
        if not self.header_image or not self.header_image.strip():
            raise ValueError(f"GameRecord {self.appid} needs a non-empty header_image")

    def to_fields(self) -> dict:
        return {
            "appid": self.appid,
            "name": self.name,
            "header_image": self.header_image,
        }

    @classmethod
    def from_fields(cls, fields: dict) -> "GameRecord":
        return cls(
            appid=int(fields["appid"]),
            name=str(fields.get("name") or ""),
            header_image=str(fields.get("header_image") or ""),
        )


@dataclass(frozen=True)
class WishlistItem:
    """A GameRecord persisted in the wishlist collection under doc_id."""
    doc_id: str
    game: GameRecord
    added_at: str = ""
