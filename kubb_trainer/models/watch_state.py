"""
Wire models for the companion watch protocol.

WatchSessionState: What the watch displays for the running session.
WatchThrowEvent: A throw recorded on the watch.
WatchInputConfig: Which input buttons the watch should show.

Field names and enum values are the wire contract shared with the
watch app and must round-trip unchanged.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class WatchSessionType(str, Enum):
    """Session kinds the watch knows how to display."""
    EIGHT_METER = "eightMeter"
    INKAST_BLAST = "inkastBlast"
    AROUND_THE_PITCH = "aroundThePitch"
    FULL_GAME_SIM = "fullGameSim"

    @property
    def display_name(self) -> str:
        return {
            "eightMeter": "8M Training",
            "inkastBlast": "Inkast Blast",
            "aroundThePitch": "Around Pitch",
            "fullGameSim": "Full Game Sim",
        }[self.value]


class WatchContextItemType(str, Enum):
    """How prominently the watch shows a context item."""
    PRIMARY = "primary"      # e.g. "Round 3"
    SECONDARY = "secondary"  # e.g. "Throw 4/6"
    PROGRESS = "progress"    # e.g. "18/50"


class WatchThrowType(str, Enum):
    """Input style of a throw recorded on the watch."""
    SIMPLE = "simple"
    MULTI_KUBB = "multiKubb"
    KING = "king"


@dataclass(frozen=True)
class WatchContextItem:
    label: str
    value: str
    type: WatchContextItemType = WatchContextItemType.SECONDARY

    def to_json(self) -> dict:
        return {"label": self.label, "value": self.value, "type": self.type.value}

    @classmethod
    def from_json(cls, data: dict) -> "WatchContextItem":
        return cls(
            label=data["label"],
            value=data["value"],
            type=WatchContextItemType(data["type"]),
        )


@dataclass(frozen=True)
class WatchSessionState:
    """Display state pushed to the watch. Regenerated on every sync."""
    session_id: str
    session_type: WatchSessionType
    title: str
    context_items: tuple[WatchContextItem, ...] = ()
    is_active: bool = True
    last_updated: datetime = field(default_factory=datetime.now)

    def to_json(self) -> dict:
        return {
            "sessionId": self.session_id,
            "sessionType": self.session_type.value,
            "title": self.title,
            "contextItems": [item.to_json() for item in self.context_items],
            "isActive": self.is_active,
            "lastUpdated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_json(cls, data: dict) -> "WatchSessionState":
        return cls(
            session_id=data["sessionId"],
            session_type=WatchSessionType(data["sessionType"]),
            title=data["title"],
            context_items=tuple(
                WatchContextItem.from_json(item) for item in data["contextItems"]
            ),
            is_active=bool(data["isActive"]),
            last_updated=datetime.fromisoformat(data["lastUpdated"]),
        )


@dataclass(frozen=True)
class WatchThrowEvent:
    """A throw recorded on the watch, consumed exactly once."""
    session_id: str
    throw_type: WatchThrowType
    is_hit: bool
    kubbs_hit: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def key(self) -> tuple:
        """Identity used to recognise a re-delivered event."""
        return (
            self.session_id,
            self.throw_type.value,
            self.is_hit,
            self.kubbs_hit,
            self.timestamp.isoformat(),
        )

    def to_json(self) -> dict:
        return {
            "sessionId": self.session_id,
            "throwType": self.throw_type.value,
            "isHit": self.is_hit,
            "kubbsHit": self.kubbs_hit,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_json(cls, data: dict) -> "WatchThrowEvent":
        kubbs_hit = data.get("kubbsHit")
        return cls(
            session_id=data["sessionId"],
            throw_type=WatchThrowType(data["throwType"]),
            is_hit=bool(data["isHit"]),
            kubbs_hit=int(kubbs_hit) if kubbs_hit is not None else None,
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


@dataclass(frozen=True)
class WatchInputConfig:
    """Input layout for the watch's throw buttons."""
    throw_type: WatchThrowType = WatchThrowType.SIMPLE
    kubb_options: Optional[tuple[int, ...]] = None
    show_king_option: bool = False

    def to_json(self) -> dict:
        return {
            "throwType": self.throw_type.value,
            "kubbOptions": list(self.kubb_options) if self.kubb_options else None,
            "showKingOption": self.show_king_option,
        }

    @classmethod
    def from_json(cls, data: dict) -> "WatchInputConfig":
        options = data.get("kubbOptions")
        return cls(
            throw_type=WatchThrowType(data["throwType"]),
            kubb_options=tuple(int(o) for o in options) if options else None,
            show_king_option=bool(data.get("showKingOption", False)),
        )
