"""
数据库模型
"""
from app.models.user import User
from app.models.otp_code import OtpCode, OtpPurpose
from app.models.category import Category
from app.models.tag import Tag
from app.models.article import Article, ArticleStatus, article_tags
from app.models.comment import Comment

__all__ = [
    "User",
    "OtpCode",
    "OtpPurpose",
    "Category",
    "Tag",
    "Article",
    "ArticleStatus",
    "article_tags",
    "Comment",
]
