from html import escape
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Query
from fastapi.responses import HTMLResponse

from src.config import get_settings
from src.models.events import (
    DEFAULT_WHATSAPP_GROUP, FEST_DATES, Event, format_event_datetime, get_event_by_id, get_whatsapp_group_link
)

router = APIRouter(tags=["pages"])

SOCIAL_LINKS = {
    "Instagram": "https://www.instagram.com/websters.shivaji/",
    "LinkedIn": "https://www.linkedin.com/company/websters-shivaji-college/",
}


def share_url(event_id: str) -> str:
    """Link that opens the registration form with the event preselected"""
    return f"{get_settings().site_url}/techelonsregistration?{urlencode({'preselect': event_id})}"


def _page(title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape(title)}</title>
</head>
<body>
  <main>
{body}
    <nav>
      <a href="/">Back to home</a>
      {" ".join(f'<a href="{url}" target="_blank" rel="noopener noreferrer">{name}</a>' for name, url in SOCIAL_LINKS.items())}
    </nav>
  </main>
</body>
</html>"""


def _email_notice(already_registered: bool, email_sent: bool) -> str:
    if already_registered:
        return ""
    if email_sent:
        return "    <p class=\"email-status\">A confirmation email has been sent to your email address.</p>\n"
    return ("    <p class=\"email-status warning\">Your registration was successful, but we could not send a "
            "confirmation email. Please check with the organizers.</p>\n")


def _event_details(event: Event) -> str:
    when = format_event_datetime(event)
    date_line = when["formatted_date"]
    if when["day_of_week"]:
        date_line += f" ({when['day_of_week']})"

    rows = [
        ("Date", date_line),
        ("Time", when["formatted_time"]),
        ("Venue", event.venue or "To be announced"),
        ("Team Size", event.team_size.describe()),
    ]
    items = "\n".join(f"      <li><strong>{label}:</strong> {escape(value)}</li>" for label, value in rows)
    return f"""    <section class="event-details">
      <h2>{escape(event.name)}</h2>
      <ul>
{items}
      </ul>
    </section>
"""


@router.get("/")
async def root():
    return {
        "message": "Techelons-25 Registration API",
        "description": "Registration and confirmation service for Techelons-25, Shivaji College",
        "endpoints": {
            "techelons_registration": "/api/techelonsregistration",
            "workshop_registration": "/api/workshopregistration",
            "api_docs": "/docs",
            "health": "/health",
        },
    }


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "Techelons-25 Registration API"}


@router.get("/formsubmitted/techelons", response_class=HTMLResponse)
async def techelons_submitted(
    event: Optional[str] = None,
    already_registered: Optional[str] = Query(default=None, alias="alreadyRegistered"),
    email_sent: Optional[str] = Query(default=None, alias="emailSent"),
):
    """Confirmation page shown after a Techelons registration (token checked by the gate)"""
    is_duplicate = already_registered == "true"
    was_email_sent = email_sent != "false"
    event_details = get_event_by_id(event)

    if is_duplicate:
        heading = "You're already registered!"
        lead = "We already have your registration for this event. No need to register again."
    else:
        heading = "Registration Successful!"
        lead = "Thank you for registering for Techelons-25."

    body = f"""    <h1>{heading}</h1>
    <p>{lead}</p>
""" + _email_notice(is_duplicate, was_email_sent)

    if event_details:
        whatsapp_link = get_whatsapp_group_link(event_details.id)
        body += _event_details(event_details)
        body += f"""    <p><a class="whatsapp" href="{escape(whatsapp_link)}">Join the WhatsApp group</a></p>
    <p>Invite your friends: <a class="share" href="{escape(share_url(event_details.id))}">{escape(share_url(event_details.id))}</a></p>
"""
    else:
        body += f"""    <p>Event details will be shared with you by the organizers.</p>
    <p><a class="whatsapp" href="{DEFAULT_WHATSAPP_GROUP}">Join the Techelons WhatsApp group</a></p>
"""

    deadline = FEST_DATES.get("registration_deadline")
    if deadline:
        body += f"    <p class=\"deadline\">Registrations close on {escape(deadline)}.</p>\n"

    return _page("Techelons-25 | Registration Confirmed", body)


@router.get("/formsubmitted/workshop", response_class=HTMLResponse)
async def workshop_submitted(
    already_registered: Optional[str] = Query(default=None, alias="alreadyRegistered"),
    email_sent: Optional[str] = Query(default=None, alias="emailSent"),
):
    """Confirmation page shown after a workshop registration (token checked by the gate)"""
    is_duplicate = already_registered == "true"
    heading = "You're already registered!" if is_duplicate else "Registration Successful!"
    body = f"""    <h1>{heading}</h1>
    <p>Thank you for registering for the workshop. Please carry your college ID on the day.</p>
""" + _email_notice(is_duplicate, email_sent != "false")
    return _page("Workshop | Registration Confirmed", body)
