import logging
import re

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from config import Config
from utils import get_jkt_now

logger = logging.getLogger(__name__)


def is_email_configured() -> bool:
    return bool(Config.SMTP_HOST and Config.SMTP_USER and Config.SMTP_PASS)


def _mail_client() -> FastMail:
    conf = ConnectionConfig(
        MAIL_USERNAME=Config.SMTP_USER,
        MAIL_PASSWORD=Config.SMTP_PASS,
        MAIL_FROM=Config.SMTP_FROM,
        MAIL_FROM_NAME=Config.APP_NAME,
        MAIL_PORT=Config.SMTP_PORT,
        MAIL_SERVER=Config.SMTP_HOST,
        MAIL_SSL_TLS=Config.SMTP_SECURE,
        MAIL_STARTTLS=not Config.SMTP_SECURE,
        USE_CREDENTIALS=True,
        VALIDATE_CERTS=True,
    )
    return FastMail(conf)


async def send_email(to: str, subject: str, html: str) -> bool:
    if not is_email_configured():
        # development mode: the message goes to the log instead of SMTP
        text = re.sub(r"<[^>]*>", "", html)
        text = re.sub(r"\s+", " ", text).strip()
        logger.info("EMAIL (dev mode) to=%s subject=%s content=%s", to, subject, text)
        return True

    message = MessageSchema(
        subject=subject,
        recipients=[to],
        body=html,
        subtype=MessageType.html,
    )
    try:
        await _mail_client().send_message(message)
        return True
    except Exception:
        logger.exception("Email send error to=%s subject=%s", to, subject)
        return False


async def send_otp_email(email: str, otp: str) -> bool:
    html = f"""
    <div>
      <h1>{Config.APP_NAME}</h1>
      <h2>Kode OTP Reset Password</h2>
      <p>Gunakan kode OTP berikut untuk mereset password Anda:</p>
      <p><strong>{otp}</strong></p>
      <p>Kode ini berlaku selama {Config.OTP_EXPIRE_MINUTES} menit.</p>
      <p>Jika Anda tidak meminta reset password, abaikan email ini.</p>
      <p>&copy; {get_jkt_now().year} {Config.APP_NAME}. All rights reserved.</p>
    </div>
    """
    return await send_email(email, f"[{Config.APP_NAME}] Kode OTP Reset Password", html)


async def send_password_changed_notification(email: str) -> bool:
    reset_link = f"{Config.APP_URL}/forgot-password"
    changed_at = get_jkt_now().strftime("%d/%m/%Y %H:%M")
    html = f"""
    <div>
      <h1>{Config.APP_NAME}</h1>
      <h2>Password Anda Telah Diubah</h2>
      <p><strong>Waktu:</strong> {changed_at} WIB</p>
      <p>Jika Anda tidak merasa mengubah password, segera amankan akun Anda:</p>
      <p><a href="{reset_link}">Reset Password Sekarang</a></p>
      <p>&copy; {get_jkt_now().year} {Config.APP_NAME}. All rights reserved.</p>
    </div>
    """
    return await send_email(email, f"[{Config.APP_NAME}] Password Anda Telah Diubah", html)
