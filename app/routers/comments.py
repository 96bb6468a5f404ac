"""
评论路由
"""
from fastapi import APIRouter, Depends, status

from app.models.user import User
from app.schemas.article import CommentCreate, CommentResponse, CommentUpdate
from app.schemas.user import MessageResponse
from app.services.comment_service import CommentService, get_comment_service
from app.utils.security import get_current_user

router = APIRouter()


@router.post(
    "/articles/{slug}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    slug: str,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
):
    """发表评论"""
    comment = await service.create(slug, current_user, data.content)
    return CommentResponse.model_validate(comment)


@router.put("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: str,
    data: CommentUpdate,
    current_user: User = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
):
    """修改自己的评论"""
    comment = await service.update(comment_id, current_user, data.content)
    return CommentResponse.model_validate(comment)


@router.delete("/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: str,
    current_user: User = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
):
    """删除自己的评论"""
    await service.delete(comment_id, current_user)
    return MessageResponse(message="评论已删除")
