"""
评论服务
"""
import logging

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database import get_db
from app.models.article import Article
from app.models.comment import Comment
from app.models.user import User
from app.services.article_service import ensure_owner
from app.services.exceptions import NotFound

logger = logging.getLogger(__name__)


class CommentService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, comment_id: str) -> Comment:
        result = await self.db.execute(
            select(Comment)
            .where(Comment.id == comment_id)
            .options(selectinload(Comment.user))
            .execution_options(populate_existing=True)
        )
        comment = result.scalar_one_or_none()
        if comment is None:
            raise NotFound("评论不存在")
        return comment

    async def create(self, slug: str, user: User, content: str) -> Comment:
        article_id = await self.db.scalar(select(Article.id).where(Article.slug == slug))
        if article_id is None:
            raise NotFound("文章不存在")

        comment = Comment(content=content, user_id=user.id, article_id=article_id)
        self.db.add(comment)
        await self.db.commit()

        logger.info("Comment %s added to article %s by %s", comment.id, article_id, user.id)
        return await self.get(comment.id)

    async def update(self, comment_id: str, user: User, content: str) -> Comment:
        comment = await self.get(comment_id)
        ensure_owner(comment.user_id, user, "只能修改自己的评论")

        comment.content = content
        await self.db.commit()
        return await self.get(comment_id)

    async def delete(self, comment_id: str, user: User) -> None:
        comment = await self.get(comment_id)
        ensure_owner(comment.user_id, user, "只能删除自己的评论")

        await self.db.delete(comment)
        await self.db.commit()
        logger.info("Comment %s deleted by %s", comment_id, user.id)


def get_comment_service(db: AsyncSession = Depends(get_db)) -> CommentService:
    return CommentService(db)
