"""Feed, social and per-device sync records stored by the backend."""

import types
import typing
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, ClassVar, Optional
from uuid import UUID

NIL_UUID = UUID(int=0)
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def _json(name: str, default: Any = None) -> Any:
    return field(default=default, metadata={"json": name})


def _uuid(name: str) -> Any:
    return _json(name, NIL_UUID)


def _time(name: str) -> Any:
    return _json(name, ZERO_TIME)


def format_time(value: datetime) -> str:
    """Format a timestamp as RFC 3339 with trailing fraction zeros trimmed."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if len(text) < 19:  # years below 1000 are not zero-padded everywhere
        text = f"{value.year:04d}" + text[text.index("-"):]
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset()
    if not offset:
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    hours, minutes = divmod(abs(total) // 60, 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def _encode(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return format_time(value)
    return value


def _decode(tp: Any, value: Any, name: str) -> Any:
    origin = typing.get_origin(tp)
    if origin in (typing.Union, types.UnionType):
        if value is None:
            return None
        tp = next(arg for arg in typing.get_args(tp) if arg is not type(None))
    if tp is UUID:
        if not isinstance(value, str):
            raise ValueError(f"{name}: expected a UUID string, got {value!r}")
        return UUID(value)
    if tp is datetime:
        if not isinstance(value, str):
            raise ValueError(f"{name}: expected a timestamp string, got {value!r}")
        parsed = datetime.fromisoformat(value)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    if tp is bool:
        if not isinstance(value, bool):
            raise ValueError(f"{name}: expected a boolean, got {value!r}")
        return value
    if tp is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{name}: expected a number, got {value!r}")
        return float(value)
    if tp is str:
        if not isinstance(value, str):
            raise ValueError(f"{name}: expected a string, got {value!r}")
        return value
    return value


@dataclass(kw_only=True)
class Record:
    """Base for records exchanged as JSON objects."""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object form, keyed by wire names."""
        return {f.metadata["json"]: _encode(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        """Build a record from its JSON object form; unknown keys are ignored."""
        kwargs = {}
        for f in fields(cls):
            key = f.metadata["json"]
            if key in data:
                kwargs[f.name] = _decode(f.type, data[key], key)
        return cls(**kwargs)


@dataclass(kw_only=True)
class PlantSharing(Record):
    user_id: Optional[UUID] = _json("userID")
    plant_id: UUID = _uuid("plantID")
    to_user_id: UUID = _uuid("toUserID")
    params: str = _json("params", "")
    created_at: datetime = _time("cat")
    updated_at: datetime = _time("uat")


@dataclass(kw_only=True)
class Comment(Record):
    id: Optional[UUID] = _json("id")
    feed_entry_id: UUID = _uuid("feedEntryID")
    user_id: UUID = _uuid("userID")
    reply_to: Optional[UUID] = _json("replyTo")
    text: str = _json("text", "")
    type: str = _json("type", "")
    params: str = _json("params", "")
    created_at: datetime = _time("cat")
    updated_at: datetime = _time("uat")


@dataclass(kw_only=True)
class Report(Record):
    id: Optional[UUID] = _json("id")
    user_id: UUID = _uuid("userID")
    feed_entry_id: Optional[UUID] = _json("feedEntryID")
    comment_id: Optional[UUID] = _json("commentID")
    plant_id: Optional[UUID] = _json("plantID")
    type: str = _json("type", "")
    created_at: datetime = _time("cat")
    updated_at: datetime = _time("uat")


@dataclass(kw_only=True)
class Like(Record):
    id: Optional[UUID] = _json("id")
    feed_entry_id: Optional[UUID] = _json("feedEntryID")
    user_id: UUID = _uuid("userID")
    comment_id: Optional[UUID] = _json("commentID")
    created_at: datetime = _time("cat")
    updated_at: datetime = _time("uat")


@dataclass(kw_only=True)
class Bookmark(Record):
    id: Optional[UUID] = _json("id")
    feed_entry_id: Optional[UUID] = _json("feedEntryID")
    user_id: UUID = _uuid("userID")
    created_at: datetime = _time("cat")
    updated_at: datetime = _time("uat")


@dataclass(kw_only=True)
class LinkBookmark(Record):
    id: Optional[UUID] = _json("id")
    user_id: UUID = _uuid("userID")
    url: str = _json("url", "")
    created_at: datetime = _time("cat")
    updated_at: datetime = _time("uat")


@dataclass(kw_only=True)
class Follow(Record):
    id: Optional[UUID] = _json("id")
    user_id: UUID = _uuid("userID")
    plant_id: Optional[UUID] = _json("plantID")
    created_at: datetime = _time("cat")
    updated_at: datetime = _time("uat")


@dataclass(kw_only=True)
class UserEnd(Record):
    id: Optional[UUID] = _json("id")
    user_id: UUID = _uuid("userID")
    notification_token: Optional[str] = _json("notificationToken")
    created_at: datetime = _time("cat")
    updated_at: datetime = _time("uat")


@dataclass(kw_only=True)
class UserEndLink(Record):
    """Sync state of one object for one user end (device session)."""

    object_field: ClassVar[str] = ""

    user_end_id: UUID = _uuid("userEndID")
    sent: bool = _json("sent", False)
    dirty: bool = _json("dirty", False)
    created_at: datetime = _time("cat")
    updated_at: datetime = _time("uat")

    @property
    def object_id(self) -> UUID:
        return getattr(self, self.object_field)

    @object_id.setter
    def object_id(self, value: UUID) -> None:
        setattr(self, self.object_field, value)

    def mark_dirty(self) -> None:
        """Flag the object as changed so it is sent again."""
        self.dirty = True

    def mark_sent(self) -> None:
        """Flag the object as delivered to the user end."""
        self.sent = True


@dataclass(kw_only=True)
class UserEndBox(UserEndLink):
    object_field: ClassVar[str] = "box_id"
    box_id: UUID = _uuid("boxID")


@dataclass(kw_only=True)
class UserEndPlant(UserEndLink):
    object_field: ClassVar[str] = "plant_id"
    plant_id: UUID = _uuid("plantID")


@dataclass(kw_only=True)
class UserEndTimelapse(UserEndLink):
    object_field: ClassVar[str] = "timelapse_id"
    timelapse_id: UUID = _uuid("timelapseID")


@dataclass(kw_only=True)
class UserEndDevice(UserEndLink):
    object_field: ClassVar[str] = "device_id"
    device_id: UUID = _uuid("deviceID")


@dataclass(kw_only=True)
class UserEndFeed(UserEndLink):
    object_field: ClassVar[str] = "feed_id"
    feed_id: UUID = _uuid("feedID")


@dataclass(kw_only=True)
class UserEndFeedEntry(UserEndLink):
    object_field: ClassVar[str] = "feed_entry_id"
    feed_entry_id: UUID = _uuid("feedEntryID")


@dataclass(kw_only=True)
class UserEndFeedMedia(UserEndLink):
    object_field: ClassVar[str] = "feed_media_id"
    feed_media_id: UUID = _uuid("feedMediaID")