"""
分类路由
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.article import Article
from app.models.category import Category
from app.models.user import User
from app.schemas.article import CategoryCreate, CategoryResponse, CategoryUpdate
from app.schemas.user import MessageResponse
from app.services.exceptions import NotFound
from app.services.file_service import delete_file
from app.utils.security import get_current_user

router = APIRouter()
logger = logging.getLogger(__name__)


async def _get_category(db: AsyncSession, category_id: str) -> Category:
    category = await db.get(Category, category_id)
    if category is None:
        raise NotFound("分类不存在")
    return category


@router.get("", response_model=List[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    """获取全部分类"""
    result = await db.execute(select(Category).order_by(Category.name))
    return [CategoryResponse.model_validate(c) for c in result.scalars().all()]


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: str, db: AsyncSession = Depends(get_db)):
    return CategoryResponse.model_validate(await _get_category(db, category_id))


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """创建分类"""
    category = Category(name=data.name, description=data.description)
    db.add(category)
    await db.commit()
    logger.info("Category created: %s by %s", category.id, current_user.id)
    return CategoryResponse.model_validate(category)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """更新分类"""
    category = await _get_category(db, category_id)
    category.name = data.name
    category.description = data.description
    await db.commit()
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """删除分类，分类下的文章一并删除"""
    category = await _get_category(db, category_id)
    thumbnails = (await db.execute(
        select(Article.thumbnail).where(Article.category_id == category_id)
    )).scalars().all()

    await db.delete(category)
    await db.commit()

    for thumbnail in thumbnails:
        await delete_file(thumbnail)
    logger.info("Category deleted: %s by %s", category_id, current_user.id)
    return MessageResponse(message="分类已删除")
