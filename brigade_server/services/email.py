# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Outgoing mail. Without SMTP settings, messages are logged instead of sent."""

import logging
import smtplib
from email.message import EmailMessage

from brigade_server.config import settings

logger = logging.getLogger(__name__)


def password_reset_message(to: str, code: str) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = "Your password reset code"
    msg["From"] = settings.smtp_from
    msg["To"] = to
    msg.set_content(
        f"Your password reset code is: {code}\n\n"
        "Enter it on the reset password page together with your new password. "
        f"It expires in {settings.password_reset_ttl_minutes} minutes.\n\n"
        f"If you did not ask to reset your password you can ignore this email.\n\n{settings.app_base_url}\n"
    )
    return msg


async def send_password_reset_code(to: str, code: str) -> None:
    """Mail a reset code. Delivery failures are logged; the code stays valid."""
    msg = password_reset_message(to, code)
    if not (settings.smtp_host and settings.smtp_user):
        logger.info("SMTP not configured; password reset code for %s: %s", to, code)
        return
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password or "")
            server.send_message(msg)
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send password reset code to %s", to)
