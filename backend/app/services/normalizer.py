import math
from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator


def _text(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        for parse in (int, float):
            try:
                number = parse(value.strip())
            except ValueError:
                continue
            return number if math.isfinite(number) else None
    return None


class _FeedModel(BaseModel):
    # Unusable upstream values fall back to the field default instead of failing the record.
    @classmethod
    def _default(cls, info: ValidationInfo) -> Any:
        return cls.model_fields[info.field_name].get_default(call_default_factory=True)


class VideoAuthor(_FeedModel):
    username: str = "unknown"
    nickname: str = "Unknown User"
    avatar: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text(cls, value: Any, info: ValidationInfo) -> Any:
        text = _text(value)
        return cls._default(info) if text is None else text


class VideoStats(_FeedModel):
    likes: int | float = 0
    comments: int | float = 0
    shares: int | float = 0
    plays: int | float = 0

    @field_validator("*", mode="before")
    @classmethod
    def coerce_count(cls, value: Any, info: ValidationInfo) -> Any:
        number = _number(value)
        return cls._default(info) if number is None else number


class VideoRecord(_FeedModel):
    id: str | None = None
    video_url: str | None = None
    video_url_no_wm: str | None = None
    caption: str = ""
    author: VideoAuthor = Field(default_factory=VideoAuthor)
    cover: str | None = None
    duration: int | float = 0
    stats: VideoStats = Field(default_factory=VideoStats)
    create_time: int | float | None = None

    @field_validator("id", "video_url", "video_url_no_wm", "caption", "cover", mode="before")
    @classmethod
    def coerce_text(cls, value: Any, info: ValidationInfo) -> Any:
        text = _text(value)
        return cls._default(info) if text is None else text

    @field_validator("duration", "create_time", mode="before")
    @classmethod
    def coerce_number(cls, value: Any, info: ValidationInfo) -> Any:
        number = _number(value)
        return cls._default(info) if number is None else number


def _present(**fields: Any) -> dict[str, Any]:
    return {name: value for name, value in fields.items() if value}


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value:
            return value
    return None


def normalize_video(raw: Any) -> dict[str, Any]:
    """
    Map one upstream feed item onto the canonical record shape.

    Upstream fields are all optional and falsy values are dropped before
    validation, so the model defaults apply and a real 0 and a missing count
    look the same in the output. Numeric ids and string counts are coerced.
    """
    if not isinstance(raw, dict):
        raw = {}
    author = raw.get("author")
    if not isinstance(author, dict):
        author = {}

    record = VideoRecord(
        **_present(
            id=_first(raw, "video_id", "aweme_id"),
            video_url=raw.get("play"),
            video_url_no_wm=raw.get("wmplay"),
            caption=raw.get("title"),
            cover=_first(raw, "cover", "origin_cover"),
            duration=raw.get("duration"),
            create_time=raw.get("create_time"),
        ),
        author=VideoAuthor(
            **_present(
                username=author.get("unique_id"),
                nickname=author.get("nickname"),
                avatar=author.get("avatar"),
            )
        ),
        stats=VideoStats(
            **_present(
                likes=raw.get("digg_count"),
                comments=raw.get("comment_count"),
                shares=raw.get("share_count"),
                plays=raw.get("play_count"),
            )
        ),
    )
    return record.model_dump()


def normalize_videos(raw_videos: list[Any]) -> list[dict[str, Any]]:
    videos = [normalize_video(raw) for raw in raw_videos]
    return [video for video in videos if video["video_url"]]
