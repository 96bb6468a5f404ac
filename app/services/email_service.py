"""
邮件发送服务 - SMTP

验证码邮件使用内联样式 HTML，兼容常见邮件客户端。
"""
import smtplib
import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import Callable

from app.config import get_settings


settings = get_settings()
logger = logging.getLogger(__name__)

# (to_email, subject, html_content) -> 是否发送成功
EmailSender = Callable[[str, str, str], bool]

_FONT = "'Helvetica Neue', Helvetica, Arial, sans-serif"


def send_email(to_email: str, subject: str, html_content: str) -> bool:
    """
    发送邮件 (同步方法，调用方需放到线程池中执行)
    """
    if not settings.smtp_configured:
        logger.warning("Email service not configured, skipping send")
        return False

    try:
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f"{settings.email_from_name} <{settings.smtp_user}>"
        msg['To'] = to_email

        if settings.email_reply_to:
            msg['Reply-To'] = settings.email_reply_to

        msg.attach(MIMEText(html_content, 'html', 'utf-8'))

        smtp_host = settings.smtp_host
        smtp_port = settings.smtp_port

        if smtp_port == 465:
            server = smtplib.SMTP_SSL(smtp_host, smtp_port, timeout=20)
        else:
            server = smtplib.SMTP(smtp_host, smtp_port, timeout=20)
            server.ehlo()
            server.starttls()
            server.ehlo()

        with server:
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.smtp_user, [to_email], msg.as_string())

        logger.info("Email sent successfully to %s", _sanitize_log_input(to_email))
        return True
    except (smtplib.SMTPException, OSError) as e:
        # 不记录完整的异常信息，避免泄露敏感配置（如密码）
        logger.error("Failed to send email to %s: %s", _sanitize_log_input(to_email), type(e).__name__)
        return False


def get_email_sender() -> EmailSender:
    """邮件发送依赖，测试中可替换"""
    return send_email


def _sanitize_log_input(email: str) -> str:
    """清理邮箱地址用于日志记录，防止日志注入"""
    if not email:
        return "(empty)"
    return ''.join(char for char in email if char.isprintable())[:100]


# ============================================================================
# 邮件模板
# ============================================================================

def _layout(title: str, body: str) -> str:
    """外层结构：居中白色卡片"""
    return f"""<!DOCTYPE html>
<html>
<head><meta http-equiv="Content-Type" content="text/html; charset=UTF-8" /></head>
<body style="margin: 0; padding: 0; background-color: #f3f4f6;">
<table width="100%" cellpadding="0" cellspacing="0" role="presentation" style="padding: 24px 0;">
    <tr>
        <td align="center">
            <table width="480" cellpadding="0" cellspacing="0" role="presentation" style="background-color: #ffffff; border-radius: 12px;">
                <tr>
                    <td style="padding: 28px 24px 8px; font-family: {_FONT}; font-size: 22px; font-weight: 700; color: #111827;">{title}</td>
                </tr>
                <tr>
                    <td style="padding: 8px 24px 28px; font-family: {_FONT}; font-size: 14px; line-height: 22px; color: #4b5563;">{body}</td>
                </tr>
            </table>
        </td>
    </tr>
</table>
</body>
</html>
"""


def _code_box(code: str) -> str:
    """验证码展示框"""
    return f"""
<p style="margin: 20px 0; padding: 18px; text-align: center; border: 2px dashed #2563eb; border-radius: 10px; font-family: 'Courier New', Courier, monospace; font-size: 32px; font-weight: 700; letter-spacing: 8px; color: #111827;">{code}</p>
"""


def _otp_email(name: str, intro: str, code: str) -> str:
    return f"""
<p style="margin: 0 0 12px;">Hi {escape(name)},</p>
<p style="margin: 0;">{intro}</p>
{_code_box(code)}
<p style="margin: 0 0 8px;">This code expires in <strong>{settings.otp_expire_minutes} minutes</strong>.</p>
<p style="margin: 0; color: #9ca3af;">If you did not request this, you can safely ignore this email.</p>
"""


def render_verification_email(name: str, code: str) -> str:
    """邮箱验证邮件"""
    body = _otp_email(name, "Use the code below to verify your email address:", code)
    return _layout("Verify your email", body)


def render_password_reset_email(name: str, code: str) -> str:
    """重置密码邮件"""
    body = _otp_email(name, "Use the code below to reset your password:", code)
    return _layout("Reset your password", body)
