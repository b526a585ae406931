"""Article API routes.

Reads are open. Writes go through the access control gate, then the
service, then — only when the service reports a non-zero count — the
broadcaster. A zero count is a 404 and nothing is published.

- GET    /articles                    → newest first, paginated
- GET    /articles/search?q=          → keyword search
- GET    /articles/id/{id}            → one article
- GET    /articles/title/{title}      → case-insensitive title match
- GET    /articles/author/{author}    → exact author match
- POST   /articles                    → create            (author/admin)
- POST   /articles/uploads            → store an image    (author/admin)
- PUT    /articles/id/{id}            → update one        (owner/admin)
- DELETE /articles/id/{id}            → delete one        (owner/admin)
- PUT    /articles/title/{title}      → bulk update       (author/admin)
- DELETE /articles/title/{title}      → bulk delete       (author/admin)
- PUT    /articles/author/{author}    → bulk update       (author/admin)
- DELETE /articles/author/{author}    → bulk delete       (admin)
"""

import uuid

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.auth.dependencies import require_admin, require_author_or_admin
from newsdesk.db.engine import get_db
from newsdesk.errors import NotFound, ValidationFailed
from newsdesk.realtime.broadcast import Broadcaster, get_broadcaster
from newsdesk.schemas.article import (
    ArticleCreate,
    ArticleMessage,
    ArticlePage,
    ArticleRead,
    ArticleUpdate,
    ImageUploaded,
    MutationResult,
    SearchPage,
)
from newsdesk.services.article_service import ArticleService, Page
from newsdesk.services.upload_service import store_image

router = APIRouter(prefix="/articles")

_author_or_admin = [Depends(require_author_or_admin)]
_admin = [Depends(require_admin)]


def _svc(db: AsyncSession = Depends(get_db)) -> ArticleService:
    return ArticleService(db)


def _parse_id(raw: str) -> uuid.UUID:
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise ValidationFailed("Invalid article id")


def _page_body(page: Page) -> dict:
    return {
        "items": page.items,
        "total": page.total,
        "page": page.page,
        "limit": page.limit,
        "page_count": page.page_count,
    }


# ─── Reads ──────────────────────────────────────────────

@router.get("", response_model=ArticlePage)
async def list_articles(
    page: int = 1,
    limit: int = 5,
    svc: ArticleService = Depends(_svc),
):
    return _page_body(await svc.paginate(page, limit))


@router.get("/search", response_model=SearchPage)
async def search_articles(
    q: str = "",
    page: int = 1,
    limit: int = 10,
    svc: ArticleService = Depends(_svc),
):
    """Search title, description, journal, author and categories."""
    result = await svc.search(q, page, limit)
    if result.total == 0:
        raise NotFound(f'No articles found matching "{q.strip()}"')
    return {
        **_page_body(result),
        "query": q.strip(),
        "message": f"{result.total} article(s) found",
    }


@router.get("/id/{article_id}", response_model=ArticleRead)
async def get_article(article_id: str, svc: ArticleService = Depends(_svc)):
    article = await svc.get(_parse_id(article_id))
    if article is None:
        raise NotFound("Article not found")
    return article


@router.get("/title/{title}", response_model=list[ArticleRead])
async def get_articles_by_title(title: str, svc: ArticleService = Depends(_svc)):
    articles = await svc.find_by_title(title)
    if not articles:
        raise NotFound("No articles found with this title")
    return articles


@router.get("/author/{author}", response_model=list[ArticleRead])
async def get_articles_by_author(author: str, svc: ArticleService = Depends(_svc)):
    articles = await svc.find_by_author(author)
    if not articles:
        raise NotFound("No articles found for this author")
    return articles


# ─── Create ─────────────────────────────────────────────

@router.post(
    "",
    response_model=ArticleMessage,
    status_code=201,
    dependencies=_author_or_admin,
)
async def create_article(
    body: ArticleCreate,
    svc: ArticleService = Depends(_svc),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    result = await svc.create(body.model_dump())
    await broadcaster.publish(result.event)
    return {"message": "Article created", "article": result.article}


@router.post(
    "/uploads",
    response_model=ImageUploaded,
    status_code=201,
    dependencies=_author_or_admin,
)
async def upload_image(image: UploadFile = File(...)):
    """Store an article image; use the returned URL as image_url."""
    return {"image_url": await store_image(image)}


# ─── Single-article writes ──────────────────────────────

@router.put(
    "/id/{article_id}",
    response_model=ArticleMessage,
    dependencies=_author_or_admin,
)
async def update_article(
    article_id: str,
    body: ArticleUpdate,
    svc: ArticleService = Depends(_svc),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    result = await svc.update_by_id(_parse_id(article_id), body.changes())
    if result.count == 0:
        raise NotFound("Article not found")
    await broadcaster.publish(result.event)
    return {"message": "Article updated", "article": result.article}


@router.delete(
    "/id/{article_id}",
    response_model=MutationResult,
    dependencies=_author_or_admin,
)
async def delete_article(
    article_id: str,
    svc: ArticleService = Depends(_svc),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    result = await svc.delete_by_id(_parse_id(article_id))
    if result.count == 0:
        raise NotFound("Article not found")
    await broadcaster.publish(result.event)
    return {"message": "Article deleted", "count": result.count}


# ─── Bulk writes ────────────────────────────────────────

@router.put(
    "/title/{title}",
    response_model=MutationResult,
    dependencies=_author_or_admin,
)
async def update_articles_by_title(
    title: str,
    body: ArticleUpdate,
    svc: ArticleService = Depends(_svc),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    result = await svc.update_by_title(title, body.changes())
    if result.count == 0:
        raise NotFound("No articles found with this title")
    await broadcaster.publish(result.event)
    return {"message": f"{result.count} article(s) updated", "count": result.count}


@router.delete(
    "/title/{title}",
    response_model=MutationResult,
    dependencies=_author_or_admin,
)
async def delete_articles_by_title(
    title: str,
    svc: ArticleService = Depends(_svc),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    result = await svc.delete_by_title(title)
    if result.count == 0:
        raise NotFound("No articles found with this title")
    await broadcaster.publish(result.event)
    return {"message": f"{result.count} article(s) deleted", "count": result.count}


@router.put(
    "/author/{author}",
    response_model=MutationResult,
    dependencies=_author_or_admin,
)
async def update_articles_by_author(
    author: str,
    body: ArticleUpdate,
    svc: ArticleService = Depends(_svc),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    result = await svc.update_by_author(author, body.changes())
    if result.count == 0:
        raise NotFound("No articles found for this author")
    await broadcaster.publish(result.event)
    return {"message": f"{result.count} article(s) updated", "count": result.count}


@router.delete(
    "/author/{author}",
    response_model=MutationResult,
    dependencies=_admin,
)
async def delete_articles_by_author(
    author: str,
    svc: ArticleService = Depends(_svc),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    result = await svc.delete_by_author(author)
    if result.count == 0:
        raise NotFound("No articles found for this author")
    await broadcaster.publish(result.event)
    return {"message": f"{result.count} article(s) deleted", "count": result.count}
