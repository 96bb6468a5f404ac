"""
标签服务 - 查找或创建标签，并让文章的标签集合与请求完全一致

并发请求可能同时创建同名标签，插入使用 ON CONFLICT DO NOTHING，
依赖 tags.name 唯一约束保证同名只有一行，随后再按名称读取。
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy import insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database import transaction
from app.models.article import Article
from app.models.tag import Tag
from app.services.exceptions import NotFound, ValidationFailed
from app.utils.metrics import TAG_RECONCILIATIONS

logger = logging.getLogger(__name__)

TAG_NAME_MAX_LENGTH = 50


def normalize_tag_names(names: Iterable[str]) -> List[str]:
    """去除首尾空白、丢弃空值，按首次出现顺序去重"""
    seen = set()
    ordered: List[str] = []
    for raw in names:
        name = (raw or "").strip()
        if not name or name in seen:
            continue
        seen.add(name)
        ordered.append(name)
    return ordered


def validate_tag_names(names: Iterable[str]) -> List[str]:
    """
    规范化标签名并校验长度

    Raises:
        ValidationFailed: 存在超过 TAG_NAME_MAX_LENGTH 的标签名
    """
    normalized = normalize_tag_names(names)
    too_long = [name for name in normalized if len(name) > TAG_NAME_MAX_LENGTH]
    if too_long:
        raise ValidationFailed("标签名称过长", details=[
            {"field": "tags", "message": f"tag names must be at most {TAG_NAME_MAX_LENGTH} characters"},
        ])
    return normalized


class TagReconciler:
    """
    文章标签对账

    使用方式:
        reconciler = TagReconciler(db)
        tags = await reconciler.reconcile(article_id, ["go", "python"])
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_by_name(self, name: str) -> Optional[Tag]:
        result = await self.db.execute(select(Tag).where(Tag.name == name))
        return result.scalar_one_or_none()

    def _insert_ignoring_conflict(self, name: str):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(Tag).values(name=name).on_conflict_do_nothing(index_elements=["name"])
        if dialect == "sqlite":
            return sqlite.insert(Tag).values(name=name).on_conflict_do_nothing(index_elements=["name"])
        if dialect in ("mysql", "mariadb"):
            return insert(Tag).values(name=name).prefix_with("IGNORE")
        return insert(Tag).values(name=name)

    async def find_or_create(self, name: str) -> Tag:
        tag = await self._get_by_name(name)
        if tag is not None:
            return tag

        await self.db.execute(self._insert_ignoring_conflict(name))
        tag = await self._get_by_name(name)
        if tag is None:
            raise RuntimeError(f"tag {name!r} missing after insert")
        return tag

    async def find_or_create_all(self, names: Iterable[str]) -> List[Tag]:
        return [await self.find_or_create(name) for name in validate_tag_names(names)]

    async def apply(self, article_id: str, names: Iterable[str]) -> List[Tag]:
        """
        在调用方的事务内完成对账（不提交）

        Raises:
            NotFound: 文章在事务内已不存在
        """
        tags = await self.find_or_create_all(names)

        result = await self.db.execute(
            select(Article)
            .where(Article.id == article_id)
            .options(selectinload(Article.tags))
            .execution_options(populate_existing=True)
        )
        article = result.scalar_one_or_none()
        if article is None:
            raise NotFound("文章不存在")

        # 替换关联：新增缺失的，移除多余的；不再引用的标签行保留
        article.tags = tags
        await self.db.flush()
        TAG_RECONCILIATIONS.inc()

        logger.info(
            "Article %s tags reconciled: %s",
            article_id,
            ", ".join(tag.name for tag in tags) or "(none)",
        )
        return tags

    async def reconcile(self, article_id: str, names: Iterable[str]) -> List[Tag]:
        """独立事务中完成对账，任何异常都会整体回滚"""
        async with transaction(self.db):
            return await self.apply(article_id, names)
