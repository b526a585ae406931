"""Article service — the content store adapter.

Service layer separates business logic from HTTP routing. Routes call
the service, the service calls the database.

Every mutating method commits before returning and hands back a
Mutation. Its `event` is set only when the write touched at least one
row, so a route can publish unconditionally after the call and still
never announce a change that did not apply.

Text matching:
- title lookups and search are case-insensitive substring matches
- author lookups are exact (author is an identity, not a phrase)
"""

import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import String, cast, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.db.models import Article
from newsdesk.errors import ValidationFailed
from newsdesk.events import types as events
from newsdesk.events.types import BroadcastEvent
from newsdesk.schemas.article import ArticleRead

logger = structlog.get_logger()

MIN_QUERY_LENGTH = 2
MAX_PAGE_SIZE = 100

# Fields a keyword search looks at (OR-combined).
SEARCH_FIELDS = ("title", "description", "journal_name", "author")


@dataclass(frozen=True)
class Mutation:
    """Outcome of a write: how many rows changed and what to announce."""
    count: int
    article: Optional[Article] = None
    event: Optional[BroadcastEvent] = None


@dataclass(frozen=True)
class Page:
    items: list[Article]
    total: int
    page: int
    limit: int

    @property
    def page_count(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0


def validate_paging(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationFailed("Page number must be at least 1")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationFailed(f"Limit must be between 1 and {MAX_PAGE_SIZE}")


def _criterion(value: str, field: str, min_length: int = 1) -> str:
    cleaned = (value or "").strip()
    if len(cleaned) < min_length:
        raise ValidationFailed(
            f"{field.capitalize()} must contain at least {min_length} character(s)"
        )
    return cleaned


def _serialize(article: Article) -> dict:
    return ArticleRead.model_validate(article).model_dump(mode="json")


class ArticleService:
    """Business logic for article storage, lookup and search."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Reads ──────────────────────────────────────────

    async def get(self, article_id: uuid.UUID) -> Optional[Article]:
        return await self.db.get(Article, article_id)

    async def find_by_title(self, title: str) -> list[Article]:
        title = _criterion(title, "title")
        result = await self.db.execute(
            select(Article)
            .where(Article.title.icontains(title, autoescape=True))
            .order_by(Article.created_at.desc())
        )
        return list(result.scalars().all())

    async def find_by_author(self, author: str) -> list[Article]:
        author = _criterion(author, "author")
        result = await self.db.execute(
            select(Article)
            .where(Article.author == author)
            .order_by(Article.created_at.desc())
        )
        return list(result.scalars().all())

    async def paginate(self, page: int = 1, limit: int = 5) -> Page:
        """Newest first."""
        validate_paging(page, limit)
        return await self._page(None, page, limit)

    async def search(self, query: str, page: int = 1, limit: int = 10) -> Page:
        """Keyword search across title, description, journal, author and categories.

        The query must be at least 2 characters after trimming.
        """
        if not isinstance(query, str) or len(query.strip()) < MIN_QUERY_LENGTH:
            raise ValidationFailed(
                f"Search query must contain at least {MIN_QUERY_LENGTH} characters"
            )
        validate_paging(page, limit)
        q = query.strip()
        condition = or_(
            *(getattr(Article, f).icontains(q, autoescape=True) for f in SEARCH_FIELDS),
            cast(Article.category, String).icontains(q, autoescape=True),
        )
        return await self._page(condition, page, limit)

    async def _page(self, condition, page: int, limit: int) -> Page:
        count_q = select(func.count()).select_from(Article)
        items_q = select(Article)
        if condition is not None:
            count_q = count_q.where(condition)
            items_q = items_q.where(condition)

        total = (await self.db.execute(count_q)).scalar_one()
        result = await self.db.execute(
            items_q.order_by(Article.created_at.desc(), Article.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return Page(items=list(result.scalars().all()), total=total, page=page, limit=limit)

    # ─── Writes ─────────────────────────────────────────

    async def create(self, data: dict) -> Mutation:
        article = Article(**data)
        self.db.add(article)
        await self.db.commit()
        logger.info("article.created", article_id=str(article.id), author=article.author)
        return Mutation(
            count=1,
            article=article,
            event=events.article_created(_serialize(article)),
        )

    async def update_by_id(self, article_id: uuid.UUID, changes: dict) -> Mutation:
        count = await self._update(Article.id == article_id, changes)
        if count == 0:
            return Mutation(count=0)
        article = await self.db.get(Article, article_id, populate_existing=True)
        logger.info("article.updated", article_id=str(article_id))
        return Mutation(
            count=count,
            article=article,
            event=events.article_updated(_serialize(article)),
        )

    async def update_by_title(self, title: str, changes: dict) -> Mutation:
        title = _criterion(title, "title")
        count = await self._update(Article.title.icontains(title, autoescape=True), changes)
        return self._bulk(count, events.articles_updated, {"title": title})

    async def update_by_author(self, author: str, changes: dict) -> Mutation:
        author = _criterion(author, "author")
        count = await self._update(Article.author == author, changes)
        return self._bulk(count, events.articles_updated, {"author": author})

    async def delete_by_id(self, article_id: uuid.UUID) -> Mutation:
        count = await self._delete(Article.id == article_id)
        if count == 0:
            return Mutation(count=0)
        logger.info("article.deleted", article_id=str(article_id))
        return Mutation(count=count, event=events.article_deleted(str(article_id)))

    async def delete_by_title(self, title: str) -> Mutation:
        title = _criterion(title, "title", min_length=2)
        count = await self._delete(Article.title.icontains(title, autoescape=True))
        return self._bulk(count, events.articles_deleted, {"title": title})

    async def delete_by_author(self, author: str) -> Mutation:
        author = _criterion(author, "author", min_length=2)
        count = await self._delete(Article.author == author)
        return self._bulk(count, events.articles_deleted, {"author": author})

    async def _update(self, condition, changes: dict) -> int:
        if not changes:
            raise ValidationFailed("No fields to update")
        values = {**changes, "updated_at": datetime.now(timezone.utc)}
        result = await self.db.execute(
            update(Article)
            .where(condition)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def _delete(self, condition) -> int:
        result = await self.db.execute(
            delete(Article)
            .where(condition)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount or 0

    @staticmethod
    def _bulk(count: int, make_event, criteria: dict) -> Mutation:
        if count == 0:
            return Mutation(count=0)
        logger.info("articles.bulk_changed", count=count, **criteria)
        return Mutation(count=count, event=make_event(count, criteria))
