from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from app.schemas.user import UserBrief


# Category Schemas
class CategoryBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1)

class CategoryCreate(CategoryBase):
    pass

class CategoryUpdate(CategoryBase):
    pass

class CategoryResponse(CategoryBase):
    id: str

    class Config:
        from_attributes = True


# Tag Schemas
class TagBase(BaseModel):
    name: str = Field(min_length=1, max_length=50)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        # 长度校验作用于去除空白后的名称
        return value.strip() if isinstance(value, str) else value

class TagCreate(TagBase):
    pass

class TagUpdate(TagBase):
    pass

class TagResponse(TagBase):
    id: str

    class Config:
        from_attributes = True


# Comment Schemas
class CommentBase(BaseModel):
    content: str = Field(min_length=1)

class CommentCreate(CommentBase):
    pass

class CommentUpdate(CommentBase):
    pass

class CommentResponse(CommentBase):
    id: str
    article_id: str
    user_id: str
    created_at: datetime
    updated_at: datetime

    user: Optional[UserBrief] = None

    class Config:
        from_attributes = True


# Article Schemas
class ArticleResponse(BaseModel):
    id: str
    title: str
    slug: str
    thumbnail: str
    content: str
    status: str
    category_id: str
    author_id: str
    created_at: datetime
    updated_at: datetime

    category: Optional[CategoryResponse] = None
    author: Optional[UserBrief] = None
    tags: List[TagResponse] = []

    class Config:
        from_attributes = True

class ArticleDetailResponse(ArticleResponse):
    comments: List[CommentResponse] = []

class ArticleListResponse(BaseModel):
    articles: List[ArticleResponse]
    total: int
