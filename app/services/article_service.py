"""
文章服务 - 文章读写、缩略图与标签对账、作者权限校验

文章行写入与标签对账在同一事务中提交，任一步失败整体回滚，
本次请求新保存的缩略图文件也会被删除。
"""
import logging
from typing import List, Optional

from fastapi import Depends, UploadFile
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import Settings, get_settings
from app.database import get_db, transaction
from app.models.article import Article, ArticleStatus
from app.models.category import Category
from app.models.comment import Comment
from app.models.user import User
from app.services.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from app.services.file_service import delete_file, save_image_file
from app.services.tag_service import TagReconciler, validate_tag_names

logger = logging.getLogger(__name__)


def ensure_owner(owner_id: str, user: User, message: str) -> None:
    """作者校验：资源记录的作者必须是当前用户"""
    if owner_id != user.id:
        raise Forbidden(message)


class ArticleService:

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.tags = TagReconciler(db)

    def _detail_query(self, with_comments: bool = False):
        query = select(Article).options(
            selectinload(Article.category),
            selectinload(Article.author),
            selectinload(Article.tags),
        )
        if with_comments:
            query = query.options(
                selectinload(Article.comments).selectinload(Comment.user)
            )
        return query.execution_options(populate_existing=True)

    async def list_articles(self) -> List[Article]:
        result = await self.db.execute(
            self._detail_query().order_by(Article.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_by_slug(self, slug: str, with_comments: bool = False) -> Article:
        result = await self.db.execute(
            self._detail_query(with_comments).where(Article.slug == slug)
        )
        article = result.scalar_one_or_none()
        if article is None:
            raise NotFound("文章不存在")
        return article

    async def _ensure_category(self, category_id: str) -> None:
        exists = await self.db.scalar(
            select(func.count(Category.id)).where(Category.id == category_id)
        )
        if not exists:
            raise ValidationFailed("分类不存在", details=[
                {"field": "category_id", "message": "category does not exist"},
            ])

    async def _ensure_slug_free(self, slug: str, exclude_id: Optional[str] = None) -> None:
        query = select(func.count(Article.id)).where(Article.slug == slug)
        if exclude_id:
            query = query.where(Article.id != exclude_id)
        if await self.db.scalar(query):
            raise Conflict("该 slug 已被使用")

    async def create_article(
        self,
        author: User,
        title: str,
        slug: str,
        content: str,
        category_id: str,
        thumbnail: UploadFile,
        tag_names: List[str],
        status: ArticleStatus = ArticleStatus.DRAFT,
    ) -> Article:
        await self._ensure_category(category_id)
        await self._ensure_slug_free(slug)
        tag_names = validate_tag_names(tag_names)

        thumbnail_path = await save_image_file(thumbnail, self.settings.upload_dir)
        try:
            async with transaction(self.db):
                article = Article(
                    title=title,
                    slug=slug,
                    thumbnail=thumbnail_path,
                    content=content,
                    category_id=category_id,
                    author_id=author.id,
                    status=status.value,
                    tags=[],
                )
                self.db.add(article)
                await self.db.flush()
                await self.tags.apply(article.id, tag_names)
        except Exception as exc:
            await delete_file(thumbnail_path)
            if isinstance(exc, IntegrityError):
                # 并发请求抢先占用了同一 slug
                raise Conflict("该 slug 已被使用") from exc
            raise

        logger.info("Article created: %s by %s", article.id, author.id)
        return await self.get_by_slug(slug)

    async def update_article(
        self,
        slug: str,
        user: User,
        title: Optional[str] = None,
        new_slug: Optional[str] = None,
        content: Optional[str] = None,
        category_id: Optional[str] = None,
        status: Optional[ArticleStatus] = None,
        thumbnail: Optional[UploadFile] = None,
        tag_names: Optional[List[str]] = None,
    ) -> Article:
        """部分更新；tag_names 为 None 时保留原有标签"""
        article = await self.get_by_slug(slug)
        ensure_owner(article.author_id, user, "只有作者可以修改该文章")

        if category_id is not None:
            await self._ensure_category(category_id)
        if new_slug is not None and new_slug != article.slug:
            await self._ensure_slug_free(new_slug, exclude_id=article.id)
        if tag_names is not None:
            tag_names = validate_tag_names(tag_names)

        old_thumbnail = None
        new_thumbnail = None
        if thumbnail is not None:
            new_thumbnail = await save_image_file(thumbnail, self.settings.upload_dir)

        try:
            async with transaction(self.db):
                if title is not None:
                    article.title = title
                if new_slug is not None:
                    article.slug = new_slug
                if content is not None:
                    article.content = content
                if category_id is not None:
                    article.category_id = category_id
                if status is not None:
                    article.status = status.value
                if new_thumbnail is not None:
                    old_thumbnail = article.thumbnail
                    article.thumbnail = new_thumbnail
                await self.db.flush()
                if tag_names is not None:
                    await self.tags.apply(article.id, tag_names)
        except Exception as exc:
            if new_thumbnail is not None:
                await delete_file(new_thumbnail)
            if isinstance(exc, IntegrityError):
                raise Conflict("该 slug 已被使用") from exc
            raise

        if old_thumbnail:
            await delete_file(old_thumbnail)

        logger.info("Article updated: %s", article.id)
        return await self.get_by_slug(article.slug)

    async def delete_article(self, slug: str, user: User) -> None:
        """删除文章，评论与标签关联随之删除"""
        article = await self.get_by_slug(slug)
        ensure_owner(article.author_id, user, "只有作者可以删除该文章")

        thumbnail = article.thumbnail
        async with transaction(self.db):
            await self.db.delete(article)

        await delete_file(thumbnail)
        logger.info("Article deleted: %s by %s", article.id, user.id)


def get_article_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ArticleService:
    return ArticleService(db, settings)
