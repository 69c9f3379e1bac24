"""Confirmation e-mails sent through SendGrid."""
import logging
import re
from html import escape
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from src.config import get_settings
from src.models.events import Event, format_event_datetime, get_event_by_id, get_whatsapp_group_link
from src.models.schemas import EmailResult
from src.utils.cache import TTLCache

logger = logging.getLogger(__name__)

FROM_NAME = "Websters - Shivaji College"
FEST_NAME = "Techelons-25"

TRANSPORT_TTL = 30 * 60  # 30 minutes
TEMPLATE_CACHE_TTL = 60 * 60  # 1 hour

_client_cache = TTLCache(TRANSPORT_TTL)
_template_cache = TTLCache(TEMPLATE_CACHE_TTL)

TAG_PATTERN = re.compile(r"<[^>]*>")


def get_mail_client(api_key: str) -> SendGridAPIClient:
    """Memoized SendGrid client, rebuilt after TRANSPORT_TTL"""
    return _client_cache.get_or_create(api_key, lambda: SendGridAPIClient(api_key=api_key))


def html_to_text(html: str) -> str:
    return TAG_PATTERN.sub("", html)


def send_email(to: str, subject: str, html: str, text: Optional[str] = None) -> EmailResult:
    """Send an e-mail; failures are returned, never raised"""
    if not to or not subject or not html:
        logger.error("Missing required email parameters")
        return EmailResult(success=False, error="Missing required email parameters (to, subject, or html)")

    settings = get_settings()
    if not settings.sendgrid_api_key:
        logger.warning("SENDGRID_API_KEY is not configured, skipping email to %s", to)
        return EmailResult(
            success=False,
            error="Email service not configured",
            details="Set SENDGRID_API_KEY and SENDGRID_FROM_EMAIL in the environment.",
        )

    try:
        message = Mail(
            from_email=(settings.sendgrid_from_email, FROM_NAME),
            to_emails=to,
            subject=subject,
            html_content=html,
            plain_text_content=text or html_to_text(html),
        )
        response = get_mail_client(settings.sendgrid_api_key).send(message)
    except Exception as e:
        logger.error("Error sending email to %s: %s", to, e)
        status_code = getattr(e, "status_code", None)
        details = "Unknown error"
        if status_code in (401, 403):
            details = "Authentication failed. Check SENDGRID_API_KEY in .env file."
        elif status_code is not None:
            details = f"SendGrid response code: {status_code}, message: {getattr(e, 'body', '')}"
        return EmailResult(
            success=False,
            error=str(e),
            details=details,
            code=str(status_code) if status_code is not None else None,
        )

    if response.status_code != 202:
        logger.error("SendGrid rejected email to %s with status %s", to, response.status_code)
        return EmailResult(
            success=False,
            error=f"Unexpected SendGrid status {response.status_code}",
            code=str(response.status_code),
        )

    message_id = None
    if getattr(response, "headers", None):
        message_id = response.headers.get("X-Message-Id")
    logger.info("Email sent to %s (%s)", to, message_id)
    return EmailResult(success=True, message_id=message_id)


def _section(title: str, color: str, body: str) -> str:
    return f"""
      <div style="background-color: #ffffff; padding: 24px; border-radius: 12px; margin: 20px 0; border-left: 4px solid {color};">
        <h3 style="margin-top: 0; color: #111827; font-size: 18px;">{title}</h3>
        {body}
      </div>"""


def _has_text(value: Optional[str]) -> bool:
    return bool(value) and value not in ("TBA", "null")


def _detail_row(label: str, value: str) -> str:
    return f'<p style="margin: 0 0 8px;"><strong style="color: #4f46e5;">{label}:</strong> {escape(value)}</p>'


def _build_event_template(event: Event, whatsapp_link: Optional[str]) -> str:
    """Render the confirmation body with {{NAME}} and {{INTRO}} placeholders"""
    when = format_event_datetime(event)
    date_line = when["formatted_date"]
    if when["day_of_week"]:
        date_line += f" ({when['day_of_week']})"

    details = [_detail_row("Event", event.name)]
    if event.category:
        details.append(_detail_row("Category", event.category.capitalize()))
    details.append(_detail_row("Team Size", event.team_size.describe()))
    if event.fest_day:
        details.append(_detail_row("Fest Day", "Day 1" if event.fest_day == "day1" else "Day 2"))
    details.append(_detail_row("Date", date_line))
    details.append(_detail_row("Time", when["formatted_time"]))
    details.append(_detail_row("Venue", event.venue or "To be announced"))

    sections = []
    if whatsapp_link:
        sections.append(_section(
            "Join WhatsApp Group", "#10b981",
            f'<p>Please join the WhatsApp group for important updates and announcements:</p>'
            f'<p style="text-align: center;"><a href="{escape(whatsapp_link)}">Join WhatsApp Group</a></p>'
        ))
    if _has_text(event.description):
        sections.append(_section("About the Event", "#6366f1", f"<p>{escape(event.description)}</p>"))
    if _has_text(event.instructions):
        sections.append(_section("Special Instructions", "#f59e0b", f"<p>{escape(event.instructions)}</p>"))
    if event.rules:
        items = "".join(f"<li>{escape(rule)}</li>" for rule in event.rules)
        sections.append(_section("Event Rules", "#ef4444", f"<ul>{items}</ul>"))
    if event.prizes:
        items = "".join(f"<li><strong>{escape(p.position)}:</strong> {escape(p.reward)}</li>" for p in event.prizes)
        sections.append(_section("Prizes", "#10b981", f"<ul>{items}</ul>"))
    if _has_text(event.resources):
        sections.append(_section("Recommended Resources", "#8b5cf6", f"<p>{escape(event.resources)}</p>"))
    if event.coordinators:
        people = []
        for coordinator in event.coordinators:
            line = f"<p><strong>{escape(coordinator.name)}</strong>"
            if coordinator.email:
                line += f' | <a href="mailto:{escape(coordinator.email)}">{escape(coordinator.email)}</a>'
            if coordinator.phone:
                line += f' | <a href="tel:{escape(coordinator.phone)}">{escape(coordinator.phone)}</a>'
            people.append(line + "</p>")
        sections.append(_section("Event Coordinators", "#3b82f6", "".join(people)))

    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{FEST_NAME} Registration Confirmation</title></head>
<body style="margin: 0; padding: 0; font-family: 'Segoe UI', Tahoma, sans-serif; background-color: #f9fafb; color: #111827;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <h1 style="color: #4f46e5; text-align: center;">{FEST_NAME}</h1>
    <p style="text-align: center; color: #6b7280;">Shivaji College, University of Delhi</p>
    <div style="background-color: #ffffff; border-radius: 12px; padding: 32px;">
      <h2 style="text-align: center;">Registration Confirmation</h2>
      <p>Hello <strong style="color: #4f46e5;">{{{{NAME}}}}</strong>,</p>
      <p>{{{{INTRO}}}}</p>
      <div style="background-color: #f3f4f6; padding: 24px; border-radius: 12px;">
        <h3 style="margin-top: 0;">Event Details</h3>
        {"".join(details)}
      </div>
      {"".join(sections)}
      <p style="text-align: center; color: #6b7280;">We look forward to seeing you at the event!</p>
    </div>
    <p style="text-align: center; color: #6b7280; font-size: 12px;">This is an automated email. Please do not reply to this email.</p>
  </div>
</body>
</html>"""


def generate_email_template(name: Optional[str], event: Event, whatsapp_link: Optional[str] = None,
                            team_leader: Optional[str] = None) -> str:
    """
    Build the Techelons confirmation e-mail for one recipient.

    The event-specific part is cached per (event id, has WhatsApp link) for
    TEMPLATE_CACHE_TTL; only the name and introduction are filled in per call.
    """
    cache_key = (event.id, bool(whatsapp_link))
    template = _template_cache.get_or_create(cache_key, lambda: _build_event_template(event, whatsapp_link))

    event_name = f'<strong style="color: #4f46e5;">{escape(event.name)}</strong>'
    if team_leader:
        intro = (f"You have been registered as a team member for {event_name} by "
                 f'<strong style="color: #4f46e5;">{escape(team_leader)}</strong>. '
                 "Your team registration has been confirmed.")
    else:
        intro = f"Thank you for registering for {event_name}! Your registration has been confirmed."

    return template.replace("{{NAME}}", escape(name or "Participant")).replace("{{INTRO}}", intro)


def send_techelons_confirmation(to: str, name: str, event_id: str, is_team_member: bool = False,
                                team_leader: Optional[str] = None) -> EmailResult:
    """Send the event confirmation to a registrant or one of their team members"""
    if not to or not name or not event_id:
        return EmailResult(success=False, error="Missing required parameters for sending confirmation email")

    event = get_event_by_id(event_id)
    if event is None:
        return EmailResult(success=False, error=f"Event details not found for event ID: {event_id}")

    subject = f"Registration Confirmed: {event.name} | {FEST_NAME}"
    if is_team_member:
        subject = f"Team Registration Confirmed: {event.name} | {FEST_NAME}"

    html = generate_email_template(
        name,
        event,
        whatsapp_link=get_whatsapp_group_link(event_id),
        team_leader=team_leader if is_team_member else None,
    )
    return send_email(to, subject, html)


def generate_workshop_template(name: str, workshop_name: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<body style="font-family: 'Segoe UI', Tahoma, sans-serif; color: #111827;">
  <h2>Welcome {escape(name)}!</h2>
  <p>Thank you for registering for <strong>{escape(workshop_name)}</strong>. Your seat has been confirmed.</p>
  <p>Please carry your college ID card on the day of the workshop.</p>
  <br>
  <p>Best regards,<br>{FROM_NAME}</p>
</body>
</html>"""


def send_workshop_confirmation(email: str, name: str, subject: str, template: str) -> EmailResult:
    if not email or not name or not subject or not template:
        return EmailResult(success=False, error="Missing required parameters for workshop confirmation email")
    return send_email(email, subject, template)


def clear_caches() -> None:
    _client_cache.clear()
    _template_cache.clear()
