# utils/alerts.py
import smtplib
from email.message import EmailMessage
import os
import logging
from dotenv import load_dotenv

load_dotenv()

SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASS = os.getenv("SMTP_PASS")
ALERT_EMAIL = os.getenv("ALERT_EMAIL")
FROM_EMAIL = os.getenv("FROM_EMAIL")

logger = logging.getLogger("alerts")


def send_alert(subject, body, attachments=None):
    """
    Send an email alert with optional file attachments.

    Automatically handles SSL/TLS connections based on the configured SMTP port.
    Uses SMTP_SSL for port 465, and auto-detects STARTTLS support for other ports.

    Args:
        subject (str): Email subject line
        body (str): Email body content
        attachments (list, optional): List of file paths to attach to the email.
            Files are attached as application/octet-stream. Defaults to None.

    Returns:
        bool: True if the message was handed to the SMTP server

    Note:
        Does nothing when SMTP_HOST or ALERT_EMAIL is not configured.
        SMTP failures are logged, never raised; alerts must not fail a crawl.
    """
    if not SMTP_HOST or not ALERT_EMAIL:
        logger.info(f"SMTP not configured, alert not sent: {subject}")
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = FROM_EMAIL or SMTP_USER or ALERT_EMAIL
    msg["To"] = ALERT_EMAIL
    msg.set_content(body)

    for file_path in attachments or []:
        try:
            with open(file_path, "rb") as f:
                data = f.read()
        except OSError as e:
            logger.warning(f"Failed to attach {file_path}: {e}")
            continue
        msg.add_attachment(
            data,
            maintype="application",
            subtype="octet-stream",
            filename=os.path.basename(file_path),
        )

    try:
        if SMTP_PORT == 465:
            with smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT) as server:
                if SMTP_USER and SMTP_PASS:
                    server.login(SMTP_USER, SMTP_PASS)
                server.send_message(msg)
                return True

        with smtplib.SMTP(SMTP_HOST, SMTP_PORT) as server:
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls()
                server.ehlo()
            if SMTP_USER and SMTP_PASS:
                server.login(SMTP_USER, SMTP_PASS)
            server.send_message(msg)
            return True

    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"SMTP error: {e}")
        return False
