"""Client-side state for the Techelons registration form."""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

import requests

from src.config import get_settings
from src.models.events import Event, TeamSize, get_event_by_id
from src.utils.validation import (
    OTHER_COLLEGE,
    CollegeIdDocument,
    validate_person,
    validate_registration_details,
)

logger = logging.getLogger(__name__)

EMAIL_HINT = "Check your email address and try again"
FILE_HINT = "There may be an issue with your uploaded ID"
EMAIL_NOT_SENT_WARNING = (
    "Registration successful, but we could not send a confirmation email. Please check with the organizers."
)


@dataclass
class PersonForm:
    """Values entered for the registrant or one team member."""

    name: str = ""
    email: str = ""
    phone: str = ""
    roll_no: str = ""
    college: str = ""
    other_college: str = ""
    college_id: Optional[CollegeIdDocument] = None

    def set_college(self, value: str) -> None:
        self.college = value
        if value != OTHER_COLLEGE:
            self.other_college = ""

    def fields(self) -> Dict[str, Any]:
        """Person fields under their wire names (the ID document excluded)"""
        values = {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "rollNo": self.roll_no,
            "college": self.college,
        }
        if self.college == OTHER_COLLEGE:
            values["otherCollege"] = self.other_college
        return values

    def errors(self) -> Dict[str, str]:
        return validate_person(self.fields(), self.college_id)


@dataclass
class SubmissionOutcome:
    success: bool
    message: str
    hint: Optional[str] = None
    warning: Optional[str] = None
    redirect_url: Optional[str] = None
    already_registered: bool = False
    network_attempted: bool = False


class SubmissionError(Exception):
    """Raised when the registration API rejects a submission."""
    pass


def error_hint(message: str) -> Optional[str]:
    """Extra guidance for server errors that mention the e-mail or the uploaded ID"""
    lowered = message.lower()
    if "email" in lowered:
        return EMAIL_HINT
    if "file" in lowered or "id" in lowered:
        return FILE_HINT
    return None


@dataclass
class RegistrationForm:
    """
    Registrant details plus a team-member list sized by the selected event.

    ``team_member_count`` always stays within ``member_bounds``; members past
    the count are dropped rather than hidden so removed values cannot come back.
    """

    registrant: PersonForm = field(default_factory=PersonForm)
    course: str = ""
    year: str = ""
    query: str = ""
    selected_event_id: str = ""
    team_size: Optional[TeamSize] = None
    team_member_count: int = 0
    members: List[PersonForm] = field(default_factory=list)
    event_locked: bool = False
    is_submitting: bool = False
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def selected_event(self) -> Optional[Event]:
        return get_event_by_id(self.selected_event_id)

    @property
    def team_section_visible(self) -> bool:
        return self.team_size is not None and not self.team_size.is_solo

    @property
    def member_bounds(self) -> Tuple[int, int]:
        if self.team_size is None:
            return 0, 0
        return self.team_size.member_range

    def _resize_members(self) -> None:
        del self.members[self.team_member_count:]
        while len(self.members) < self.team_member_count:
            self.members.append(PersonForm())

    def select_event(self, event_id: str) -> bool:
        """Select an event from the catalog; unknown ids leave the form unchanged"""
        if self.event_locked and event_id != self.selected_event_id:
            return False
        event = get_event_by_id(event_id)
        if event is None:
            return False

        self.selected_event_id = event.id
        self.team_size = event.team_size
        if event.team_size.is_solo:
            self.team_member_count = 0
        else:
            self.team_member_count = max(1, event.team_size.min - 1)
        self._resize_members()
        return True

    def preselect(self, event_id: Optional[str]) -> bool:
        """Apply a ?preselect=<id> link: select the event and lock the selector"""
        if not event_id or not self.select_event(event_id):
            return False
        self.event_locked = True
        return True

    def add_member(self) -> bool:
        _, highest = self.member_bounds
        if self.team_member_count >= highest:
            return False
        self.team_member_count += 1
        self._resize_members()
        return True

    def remove_member(self) -> bool:
        lowest, _ = self.member_bounds
        if self.team_member_count <= lowest:
            return False
        self.team_member_count -= 1
        self._resize_members()
        for key in [k for k in self.errors if k.startswith(f"teamMembers.{self.team_member_count}.")]:
            del self.errors[key]
        return True

    def validate(self) -> Dict[str, str]:
        """Validate registrant and the active team members; errors keep form order"""
        errors = dict(self.registrant.errors())
        errors.update(validate_registration_details({
            "event": self.selected_event_id,
            "course": self.course,
            "year": self.year,
            "query": self.query,
        }))

        if self.team_section_visible:
            lowest, highest = self.member_bounds
            if self.team_member_count < lowest:
                errors["teamMembers"] = f"At least {lowest} team members are required"
            elif self.team_member_count > highest:
                errors["teamMembers"] = f"Maximum {highest} team members allowed"
            for index, member in enumerate(self.members[:self.team_member_count]):
                for name, message in member.errors().items():
                    errors[f"teamMembers.{index}.{name}"] = f"Team member {index + 1}: {message}"

        self.errors = errors
        return errors

    def first_error(self) -> Optional[str]:
        return next(iter(self.errors.values()), None)

    def build_payload(self) -> Tuple[Dict[str, str], List[Tuple[str, Tuple[str, bytes, str]]]]:
        """
        Multipart fields and files for the registration API.

        Each team member becomes its own ``teamMember_<i>`` JSON field with a
        separate ``teamMember_<i>_collegeId`` file part.
        """
        data = dict(self.registrant.fields())
        data.update({"event": self.selected_event_id, "course": self.course, "year": self.year})
        if self.query:
            data["query"] = self.query

        files = []
        document = self.registrant.college_id
        if document is not None:
            files.append(("collegeId", (document.filename, document.content, document.content_type)))

        active = self.members[:self.team_member_count] if self.team_section_visible else []
        for index, member in enumerate(active):
            member_fields = member.fields()
            member_fields.setdefault("otherCollege", None)
            data[f"teamMember_{index}"] = json.dumps(member_fields)
            if member.college_id is not None:
                files.append((
                    f"teamMember_{index}_collegeId",
                    (member.college_id.filename, member.college_id.content, member.college_id.content_type),
                ))
        return data, files

    def reset(self) -> None:
        locked_event = self.selected_event_id if self.event_locked else ""
        self.registrant = PersonForm()
        self.course = ""
        self.year = ""
        self.query = ""
        self.selected_event_id = ""
        self.team_size = None
        self.team_member_count = 0
        self.members = []
        self.event_locked = False
        self.is_submitting = False
        self.errors = {}
        if locked_event:
            self.preselect(locked_event)


def confirmation_url(event_id: str, token: str, email_sent: bool, already_registered: bool = False) -> str:
    params = {"event": event_id, "token": token, "emailSent": "true" if email_sent else "false"}
    if already_registered:
        params["alreadyRegistered"] = "true"
    return f"{get_settings().site_url}/formsubmitted/techelons?{urlencode(params)}"


def submit_registration(form: RegistrationForm, session: Optional[requests.Session] = None,
                        api_base_url: Optional[str] = None, timeout: float = 30) -> SubmissionOutcome:
    """Validate and post the form; nothing is sent when validation fails"""
    if form.is_submitting:
        return SubmissionOutcome(success=False, message="Your registration is already being submitted")

    if form.validate():
        return SubmissionOutcome(success=False, message=form.first_error())

    http = session or requests
    url = f"{api_base_url or get_settings().api_base_url}/techelonsregistration"
    event_id = form.selected_event_id
    form.is_submitting = True
    try:
        data, files = form.build_payload()
        response = http.post(url, data=data, files=files, timeout=timeout)
        try:
            result = response.json()
        except ValueError:
            result = {}
        if not response.ok:
            raise SubmissionError(result.get("error") or "Registration failed")
    except (requests.RequestException, SubmissionError) as e:
        message = str(e) or "Registration failed. Please try again."
        logger.warning("Registration submission failed: %s", message)
        return SubmissionOutcome(
            success=False, message=message, hint=error_hint(message), network_attempted=True
        )
    finally:
        form.is_submitting = False

    already_registered = bool(result.get("alreadyRegistered"))
    email_sent = bool(result.get("emailSent"))
    warning = None
    if not already_registered and not email_sent:
        warning = EMAIL_NOT_SENT_WARNING
        logger.error("Email sending failed: %s", result.get("emailDetails") or result.get("emailError"))

    event = get_event_by_id(event_id)
    event_name = event.name if event else "Techelons-25"
    message = f"Registration Successful! Welcome to {event_name}"
    if already_registered:
        message = f"You have already registered for {event_name}"

    form.reset()
    return SubmissionOutcome(
        success=True,
        message=message,
        warning=warning,
        redirect_url=confirmation_url(event_id, result.get("registrationToken", ""), email_sent, already_registered),
        already_registered=already_registered,
        network_attempted=True,
    )
