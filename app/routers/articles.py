"""
文章路由
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from app.models.article import ArticleStatus
from app.models.user import User
from app.schemas.article import ArticleDetailResponse, ArticleListResponse, ArticleResponse
from app.schemas.user import MessageResponse
from app.services.article_service import ArticleService, get_article_service
from app.utils.security import get_current_user

router = APIRouter()


@router.get("", response_model=ArticleListResponse)
async def list_articles(service: ArticleService = Depends(get_article_service)):
    """获取文章列表"""
    articles = await service.list_articles()
    return ArticleListResponse(
        articles=[ArticleResponse.model_validate(a) for a in articles],
        total=len(articles),
    )


@router.get("/{slug}", response_model=ArticleDetailResponse)
async def get_article(slug: str, service: ArticleService = Depends(get_article_service)):
    """按 slug 获取文章详情（含评论）"""
    article = await service.get_by_slug(slug, with_comments=True)
    return ArticleDetailResponse.model_validate(article)


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    title: str = Form(..., min_length=3, max_length=100),
    slug: str = Form(..., min_length=3, max_length=100),
    content: str = Form(..., min_length=1),
    category_id: str = Form(...),
    article_status: ArticleStatus = Form(ArticleStatus.DRAFT, alias="status"),
    tags: List[str] = Form(default=[]),
    thumbnail: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
):
    """创建文章（multipart 表单，缩略图必填）"""
    article = await service.create_article(
        author=current_user,
        title=title,
        slug=slug,
        content=content,
        category_id=category_id,
        thumbnail=thumbnail,
        tag_names=tags,
        status=article_status,
    )
    return ArticleResponse.model_validate(article)


@router.put("/{slug}", response_model=ArticleResponse)
async def update_article(
    slug: str,
    title: Optional[str] = Form(None, min_length=3, max_length=100),
    new_slug: Optional[str] = Form(None, min_length=3, max_length=100, alias="slug"),
    content: Optional[str] = Form(None, min_length=1),
    category_id: Optional[str] = Form(None),
    article_status: Optional[ArticleStatus] = Form(None, alias="status"),
    tags: Optional[List[str]] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
):
    """更新文章，未提交的字段保持不变"""
    if thumbnail is not None and not thumbnail.filename:
        thumbnail = None

    article = await service.update_article(
        slug,
        current_user,
        title=title,
        new_slug=new_slug,
        content=content,
        category_id=category_id,
        status=article_status,
        thumbnail=thumbnail,
        tag_names=tags,
    )
    return ArticleResponse.model_validate(article)


@router.delete("/{slug}", response_model=MessageResponse)
async def delete_article(
    slug: str,
    current_user: User = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
):
    """删除文章"""
    await service.delete_article(slug, current_user)
    return MessageResponse(message="文章已删除")
