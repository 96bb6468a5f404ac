"""
标签路由
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.tag import Tag
from app.models.user import User
from app.schemas.article import TagCreate, TagResponse, TagUpdate
from app.schemas.user import MessageResponse
from app.services.exceptions import Conflict, NotFound
from app.utils.security import get_current_user

router = APIRouter()


async def _get_tag(db: AsyncSession, tag_id: str) -> Tag:
    tag = await db.get(Tag, tag_id)
    if tag is None:
        raise NotFound("标签不存在")
    return tag


async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: Optional[str] = None) -> None:
    query = select(Tag.id).where(Tag.name == name)
    if exclude_id:
        query = query.where(Tag.id != exclude_id)
    if await db.scalar(query):
        raise Conflict("标签已存在")


async def _commit_unique(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("标签已存在")


@router.get("", response_model=List[TagResponse])
async def list_tags(db: AsyncSession = Depends(get_db)):
    """获取全部标签"""
    result = await db.execute(select(Tag).order_by(Tag.name))
    return [TagResponse.model_validate(t) for t in result.scalars().all()]


@router.get("/{tag_id}", response_model=TagResponse)
async def get_tag(tag_id: str, db: AsyncSession = Depends(get_db)):
    return TagResponse.model_validate(await _get_tag(db, tag_id))


@router.post("", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(
    data: TagCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """创建标签，名称唯一"""
    await _ensure_name_free(db, data.name)
    tag = Tag(name=data.name)
    db.add(tag)
    await _commit_unique(db)
    return TagResponse.model_validate(tag)


@router.put("/{tag_id}", response_model=TagResponse)
async def update_tag(
    tag_id: str,
    data: TagUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """重命名标签"""
    tag = await _get_tag(db, tag_id)
    await _ensure_name_free(db, data.name, exclude_id=tag.id)
    tag.name = data.name
    await _commit_unique(db)
    return TagResponse.model_validate(tag)


@router.delete("/{tag_id}", response_model=MessageResponse)
async def delete_tag(
    tag_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """删除标签，文章上的关联随之移除"""
    tag = await _get_tag(db, tag_id)
    await db.delete(tag)
    await db.commit()
    return MessageResponse(message="标签已删除")
