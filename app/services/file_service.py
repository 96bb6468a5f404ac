"""
缩略图文件存储（本地磁盘）
"""
import asyncio
import logging
import time
import uuid
from pathlib import Path

from fastapi import UploadFile

from app.config import get_settings
from app.services.exceptions import ValidationFailed

settings = get_settings()
logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}


def is_image(filename: str) -> bool:
    return Path(filename or "").suffix.lower() in ALLOWED_IMAGE_EXTENSIONS


def _write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


async def save_image_file(upload: UploadFile, directory: str) -> str:
    """
    保存上传的图片

    Returns:
        存储路径（POSIX 风格，写入 Article.thumbnail）

    Raises:
        ValidationFailed: 非图片扩展名、空文件或超过大小限制
    """
    if not is_image(upload.filename):
        raise ValidationFailed("仅支持 jpg / jpeg / png / gif 图片", details=[
            {"field": "thumbnail", "message": "invalid file type, only images are allowed"},
        ])

    data = await upload.read()
    if not data:
        raise ValidationFailed("缩略图文件为空", details=[
            {"field": "thumbnail", "message": "thumbnail is empty"},
        ])
    if len(data) > settings.max_upload_size_mb * 1024 * 1024:
        raise ValidationFailed(f"缩略图不能超过 {settings.max_upload_size_mb}MB", details=[
            {"field": "thumbnail", "message": "thumbnail is too large"},
        ])

    extension = Path(upload.filename).suffix.lower()
    filename = f"{int(time.time())}_{uuid.uuid4().hex[:8]}{extension}"
    path = Path(directory) / filename

    await asyncio.to_thread(_write_file, path, data)
    logger.info("Thumbnail saved: %s", path.as_posix())
    return path.as_posix()


async def delete_file(path: str) -> None:
    """删除文件，文件不存在时只记录警告"""
    if not path:
        return
    try:
        await asyncio.to_thread(Path(path).unlink)
    except FileNotFoundError:
        logger.warning("File already removed: %s", path)
