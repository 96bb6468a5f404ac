"""
邮箱验证码（OTP）模型
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base


class OtpPurpose(str, enum.Enum):
    """验证码用途"""
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


class OtpCode(Base):
    """
    验证码表

    每个 (user_id, purpose) 只保留一条记录，重复申请时原地覆盖。
    """
    __tablename__ = "otp_codes"
    __table_args__ = (
        Index("ix_otp_codes_user_purpose", "user_id", "purpose"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    otp: Mapped[str] = mapped_column(String(10))
    purpose: Mapped[str] = mapped_column(String(30))  # email_verification, password_reset
    expires_at: Mapped[datetime] = mapped_column(DateTime)
    # 验证码本身是否已校验通过（与 User.is_verified 无关）
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )

    user = relationship("User", back_populates="otp_codes")
