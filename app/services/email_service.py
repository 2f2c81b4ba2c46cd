import os
import smtplib
from datetime import datetime
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from jinja2 import Environment, FileSystemLoader, select_autoescape
from loguru import logger

from app.core.config import settings

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates", "email")

_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
)


def get_template(template_name):
    return _env.get_template(template_name)


# Helper to send email via SMTP
def send_email_via_smtp(to_email, subject, html_content):
    # Only HOST is required; user/pass are optional (e.g. Mailpit)
    if not settings.SMTP_HOST:
        logger.warning("SMTP host not configured. Skipping email.")
        return

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.EMAILS_FROM_NAME} <{settings.EMAILS_FROM_EMAIL}>"
    msg["To"] = to_email
    msg.attach(MIMEText(html_content, "html"))

    logger.debug(f"Connecting to SMTP: {settings.SMTP_HOST}:{settings.SMTP_PORT}")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        server.ehlo()

        # TLS on submission ports only; local catch-all servers run plain
        if settings.SMTP_PORT in [587, 2525]:
            server.starttls()
            server.ehlo()

        if settings.SMTP_USER and settings.SMTP_PASSWORD:
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)

        server.sendmail(settings.EMAILS_FROM_EMAIL, to_email, msg.as_string())

    logger.info(f"Email sent to {to_email}")


# ---------------------------------------------------------
# 1. APPLICATION SUBMITTED
# ---------------------------------------------------------
def send_application_submitted_email(data: dict):
    """
    data requires: name, email, application_id, title, type
    """
    template = get_template("application_submitted.html")
    html_content = template.render(
        name=data.get("name"),
        title=data.get("title"),
        application_type=data.get("type"),
        application_id=str(data.get("application_id")),
        submission_date=datetime.now().strftime("%d-%m-%Y %I:%M %p"),
        track_url=f"{settings.FRONTEND_URL}/applications/{data.get('application_id')}",
    )
    send_email_via_smtp(data.get("email"), "Application Submitted - CampusHub", html_content)


# ---------------------------------------------------------
# 2. STATUS CHANGED (forwarded / approved / rejected / escalated)
# ---------------------------------------------------------
def send_application_status_email(data: dict):
    """
    data requires: name, email, application_id, title, status, workflow_level
    optional: comment, reviewer_role
    """
    template = get_template("application_status.html")
    status = data.get("status")
    html_content = template.render(
        name=data.get("name"),
        title=data.get("title"),
        application_id=str(data.get("application_id")),
        status=status,
        workflow_level=data.get("workflow_level"),
        reviewer_role=data.get("reviewer_role"),
        comment=data.get("comment"),
        update_date=datetime.now().strftime("%d-%m-%Y"),
        track_url=f"{settings.FRONTEND_URL}/applications/{data.get('application_id')}",
    )
    send_email_via_smtp(data.get("email"), f"Application {status} - CampusHub", html_content)
