"""Static Techelons event catalog and lookup helpers."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from src.config import get_settings

DEFAULT_WHATSAPP_GROUP = "https://chat.whatsapp.com/default-techelons-group-link"
TO_BE_ANNOUNCED = "To be announced"

REGISTRATION_STATUSES = ("open", "coming-soon", "closed")

FEST_DATES = {
    "day1": "2025-03-27",
    "day2": "2025-03-28",
    "registration_deadline": "2025-03-25",
}


@dataclass(frozen=True)
class TeamSize:
    min: int
    max: int

    def __post_init__(self):
        if self.min < 1:
            raise ValueError("Team size minimum must be at least 1")
        if self.min > self.max:
            raise ValueError(f"Team size minimum ({self.min}) cannot exceed maximum ({self.max})")

    @property
    def is_solo(self) -> bool:
        return self.max == 1

    @property
    def member_range(self) -> Tuple[int, int]:
        """Allowed number of team members besides the registrant"""
        return max(0, self.min - 1), self.max - 1

    def describe(self) -> str:
        if self.min == self.max:
            return f"{self.min} {'person' if self.min == 1 else 'people'}"
        return f"{self.min}-{self.max} people"


@dataclass(frozen=True)
class Coordinator:
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass(frozen=True)
class Prize:
    position: str
    reward: str


@dataclass(frozen=True)
class Event:
    id: str
    name: str
    category: str
    team_size: TeamSize
    fest_day: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    venue: Optional[str] = None
    registration_status: str = "open"
    short_description: Optional[str] = None
    description: Optional[str] = None
    whatsapp_group: Optional[str] = None
    instructions: Optional[str] = None
    resources: Optional[str] = None
    rules: List[str] = field(default_factory=list)
    prizes: List[Prize] = field(default_factory=list)
    coordinators: List[Coordinator] = field(default_factory=list)

    def __post_init__(self):
        if self.registration_status not in REGISTRATION_STATUSES:
            raise ValueError(f"Unknown registration status: {self.registration_status}")


TECHELONS_EVENTS: Tuple[Event, ...] = (
    Event(
        id="hackathon",
        name="Hack-A-Thon",
        category="technical",
        team_size=TeamSize(min=2, max=4),
        fest_day="day1",
        date=FEST_DATES["day1"],
        time="10:00 AM - 4:00 PM",
        venue="Computer Lab 1",
        short_description="A six hour build sprint for student teams.",
        description="Build a working prototype around a theme announced on the day.",
        whatsapp_group="https://chat.whatsapp.com/techelons-hackathon",
        instructions="Bring your own laptop and charger.",
        rules=[
            "Teams of 2 to 4 members.",
            "All code must be written during the event.",
        ],
        prizes=[Prize("1st", "Rs. 5000"), Prize("2nd", "Rs. 3000")],
        coordinators=[Coordinator("Aarav Mehta", "aarav@shivaji.du.ac.in", "9876543210")],
    ),
    Event(
        id="coding-relay",
        name="Coding Relay",
        category="technical",
        team_size=TeamSize(min=3, max=3),
        fest_day="day1",
        date=FEST_DATES["day1"],
        time="11:00 AM - 1:00 PM",
        venue="Computer Lab 2",
        short_description="Three coders, one problem set, one keyboard at a time.",
        whatsapp_group="https://chat.whatsapp.com/techelons-coding-relay",
        rules=["Exactly 3 members per team.", "Members rotate every 20 minutes."],
    ),
    Event(
        id="tech-quiz",
        name="Tech Quiz",
        category="quiz",
        team_size=TeamSize(min=1, max=2),
        fest_day="day2",
        date=FEST_DATES["day2"],
        time="12:00 PM - 1:30 PM",
        venue="Seminar Hall",
        short_description="Rapid-fire rounds on computing history and trivia.",
    ),
    Event(
        id="web-design",
        name="Web Design Challenge",
        category="design",
        team_size=TeamSize(min=1, max=1),
        fest_day="day2",
        date=FEST_DATES["day2"],
        time="2:00 PM - 4:00 PM",
        venue="Computer Lab 1",
        short_description="Design and ship a single page in two hours.",
        resources="MDN Web Docs",
    ),
    Event(
        id="robo-race",
        name="Robo Race",
        category="robotics",
        team_size=TeamSize(min=2, max=5),
        fest_day="day2",
        date=FEST_DATES["day2"],
        venue="Main Ground",
        registration_status="coming-soon",
    ),
    Event(
        id="treasure-hunt",
        name="Tech Treasure Hunt",
        category="fun",
        team_size=TeamSize(min=2, max=3),
        fest_day="day1",
        registration_status="closed",
    ),
)

_EVENTS_BY_ID: Dict[str, Event] = {event.id: event for event in TECHELONS_EVENTS}


def get_event_by_id(event_id: Optional[str]) -> Optional[Event]:
    if not event_id:
        return None
    return _EVENTS_BY_ID.get(event_id)


def get_whatsapp_group_link(event_id: Optional[str]) -> str:
    event = get_event_by_id(event_id)
    if event and event.whatsapp_group:
        return event.whatsapp_group
    return DEFAULT_WHATSAPP_GROUP


def effective_registration_status(status: str) -> str:
    """Event status after applying the global REGISTRATION_OPEN switch"""
    if not get_settings().registration_open:
        return "closed"
    return status if status in REGISTRATION_STATUSES else "closed"


def format_event_datetime(event: Event) -> Dict[str, str]:
    """
    Format an event's date and time for display.

    Returns a dict with ``formatted_date``, ``formatted_time`` and
    ``day_of_week``. Missing or unparsable dates fall back to
    "To be announced" with an empty weekday.
    """
    formatted_date = TO_BE_ANNOUNCED
    day_of_week = ""
    date_str = event.date or FEST_DATES.get(event.fest_day or "")
    if date_str:
        try:
            parsed = datetime.strptime(date_str, "%Y-%m-%d")
            formatted_date = f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"
            day_of_week = parsed.strftime("%A")
        except ValueError:
            formatted_date = date_str

    return {
        "formatted_date": formatted_date,
        "formatted_time": event.time or TO_BE_ANNOUNCED,
        "day_of_week": day_of_week,
    }
