# money_manager/services/mailer.py
#
# Outbound email for budget and debt events. Delivery is off until SMTP
# credentials are configured; until then messages are only logged.

import logging
import smtplib
from email.message import EmailMessage
from html import escape
from typing import Optional

from money_manager.config import smtp_settings

logger = logging.getLogger(__name__)

SIGNATURE = "Best regards,\nMoney Manager Team"


def _deliver(settings: dict, msg: EmailMessage) -> None:
    if settings["secure"]:
        smtp = smtplib.SMTP_SSL(settings["host"], settings["port"], timeout=settings["timeout"])
    else:
        smtp = smtplib.SMTP(settings["host"], settings["port"], timeout=settings["timeout"])
    with smtp:
        if not settings["secure"]:
            smtp.starttls()
        smtp.login(settings["user"], settings["password"])
        smtp.send_message(msg)


def send_email(to: str, subject: str, text: str, html: Optional[str] = None) -> bool:
    """Send one message. Returns True only when it was handed to the SMTP server."""
    settings = smtp_settings()
    if settings is None:
        logger.info("Email delivery not configured; skipped %r to %s", subject, to)
        return False

    try:
        msg = EmailMessage()
        msg["From"] = settings["sender"]
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text)
        if html:
            msg.add_alternative(html, subtype="html")
        _deliver(settings, msg)
    except (smtplib.SMTPException, OSError, ValueError):
        logger.exception("Failed to send %r to %s", subject, to)
        return False
    logger.info("Sent %r to %s", subject, to)
    return True


def send_budget_exceeded_email(to: str, name: str, category_name: str, budget: float, spent: float) -> bool:
    exceeded_by = spent - budget
    share = f" ({spent / budget * 100:.1f}%)" if budget > 0 else ""
    text = (
        f"Hi {name},\n\n"
        f"Your spending in the {category_name} category has exceeded your budget!\n\n"
        f"Budget: ${budget:.2f}\n"
        f"Spent: ${spent:.2f}\n"
        f"Exceeded by: ${exceeded_by:.2f}{share}\n\n"
        "Consider reviewing your expenses in this category.\n\n"
        f"{SIGNATURE}\n"
    )
    html = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        '<h2 style="color: #F59E0B;">Budget Alert</h2>'
        f"<p>Hi <strong>{escape(name)}</strong>,</p>"
        f"<p>Your spending in the <strong>{escape(category_name)}</strong> category has exceeded your budget!</p>"
        f"<p><strong>Budget:</strong> ${budget:.2f}<br><strong>Spent:</strong> ${spent:.2f}<br>"
        f"<strong>Exceeded by:</strong> ${exceeded_by:.2f}{share}</p>"
        "<p>Consider reviewing your expenses in this category to get back on track.</p>"
        "</div>"
    )
    return send_email(to, f"Budget Alert: {category_name}", text, html)


def send_debt_reminder_email(to: str, name: str, debt_name: str, due_date: str, amount: float) -> bool:
    text = (
        f"Hi {name},\n\n"
        f"This is a friendly reminder that your payment for {debt_name} is due soon.\n\n"
        f"Due Date: {due_date}\n"
        f"Minimum Payment: ${amount:.2f}\n\n"
        "Don't forget to make your payment on time to avoid late fees!\n\n"
        f"{SIGNATURE}\n"
    )
    html = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        '<h2 style="color: #EF4444;">Payment Reminder</h2>'
        f"<p>Hi <strong>{escape(name)}</strong>,</p>"
        f"<p>This is a friendly reminder that your payment for <strong>{escape(debt_name)}</strong> is due soon.</p>"
        f"<p><strong>Due Date:</strong> {due_date}<br><strong>Minimum Payment:</strong> ${amount:.2f}</p>"
        "<p>Don't forget to make your payment on time to avoid late fees!</p>"
        "</div>"
    )
    return send_email(to, f"Payment Reminder: {debt_name}", text, html)
