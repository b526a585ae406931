"""Broadcast event types and their wire shapes.

Centralizing event types prevents typos and makes it easy to discover
every message a feed client can receive. Events are transient: built
after a successful mutation, serialized once, sent, discarded.

Wire shapes (JSON text frames):
    system.welcome                    {type, message, at}
    pong                              {type, at}
    article.created|article.updated   {type, message, article, at}
    article.deleted                   {type, message, articleId, at}
    articles.updated|articles.deleted {type, message, count, criteria, at}
"""

import enum
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


class EventType(str, enum.Enum):
    ARTICLE_CREATED = "article.created"
    ARTICLE_UPDATED = "article.updated"
    ARTICLE_DELETED = "article.deleted"
    ARTICLES_UPDATED = "articles.updated"
    ARTICLES_DELETED = "articles.deleted"
    SYSTEM_WELCOME = "system.welcome"
    PONG = "pong"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class BroadcastEvent:
    type: EventType
    message: Optional[str] = None
    payload: dict[str, Any] = field(default_factory=dict)
    at: datetime = field(default_factory=_now)

    def to_message(self) -> dict[str, Any]:
        msg: dict[str, Any] = {"type": self.type.value}
        if self.message is not None:
            msg["message"] = self.message
        msg.update(self.payload)
        msg["at"] = self.at.isoformat()
        return msg

    def to_json(self) -> str:
        return json.dumps(self.to_message(), default=str, ensure_ascii=False)


# ─── Constructors ───────────────────────────────────────


def article_created(article: dict[str, Any]) -> BroadcastEvent:
    return BroadcastEvent(
        EventType.ARTICLE_CREATED, "New article created", {"article": article}
    )


def article_updated(article: dict[str, Any]) -> BroadcastEvent:
    return BroadcastEvent(
        EventType.ARTICLE_UPDATED, "Article updated", {"article": article}
    )


def article_deleted(article_id: str) -> BroadcastEvent:
    return BroadcastEvent(
        EventType.ARTICLE_DELETED, "Article deleted", {"articleId": article_id}
    )


def articles_updated(count: int, criteria: dict[str, str]) -> BroadcastEvent:
    return BroadcastEvent(
        EventType.ARTICLES_UPDATED,
        f"{count} article(s) updated matching {_describe(criteria)}",
        {"count": count, "criteria": criteria},
    )


def articles_deleted(count: int, criteria: dict[str, str]) -> BroadcastEvent:
    return BroadcastEvent(
        EventType.ARTICLES_DELETED,
        f"{count} article(s) deleted matching {_describe(criteria)}",
        {"count": count, "criteria": criteria},
    )


def welcome() -> BroadcastEvent:
    return BroadcastEvent(
        EventType.SYSTEM_WELCOME, "Connected to the newsdesk live feed"
    )


def pong() -> BroadcastEvent:
    return BroadcastEvent(EventType.PONG)


def _describe(criteria: dict[str, str]) -> str:
    return ", ".join(f'{k} "{v}"' for k, v in criteria.items())
