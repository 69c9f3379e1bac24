import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.datastructures import FormData, UploadFile

from src.models.database import get_db
from src.models.events import Event, effective_registration_status, get_event_by_id
from src.models.registration import Registration, TeamMember
from src.models.schemas import (
    EmailResult, PersonBase, RegistrationIn, RegistrationResponse, TeamMemberIn, WorkshopRegistrationIn
)
from src.utils.email_service import (
    generate_workshop_template, send_techelons_confirmation, send_workshop_confirmation
)
from src.utils.exceptions import EventClosedError, RegistrationError
from src.utils.helpers import (
    generate_registration_token, mask_email, remove_college_ids, save_college_id
)
from src.utils.validation import CollegeIdDocument, validate_college_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["registrations"])

TEAM_MEMBER_FIELD = re.compile(r"^teamMember_(\d+)$")
WORKSHOP_EVENT_ID = "workshop"
WORKSHOP_NAME = "Websters Web Development Workshop"


def first_error_message(exc: ValidationError) -> str:
    """Turn the first pydantic error into a user-facing sentence"""
    error = exc.errors()[0]
    if error.get("type") == "missing":
        return f"{error['loc'][-1]} is required"
    message = error.get("msg", "Invalid input")
    prefix = "Value error, "
    return message[len(prefix):] if message.startswith(prefix) else message


async def read_document(value: Any) -> Optional[CollegeIdDocument]:
    if not isinstance(value, UploadFile):
        return None
    content = await value.read()
    return CollegeIdDocument(
        filename=value.filename or "college-id",
        content_type=value.content_type or "",
        content=content,
    )


def _text_fields(form: FormData) -> Dict[str, Any]:
    return {key: value for key, value in form.items() if not isinstance(value, UploadFile)}


def _check_document(document: Optional[CollegeIdDocument], label: str = "") -> CollegeIdDocument:
    message = validate_college_id(document)
    if message:
        raise RegistrationError(f"{label}{message}")
    return document


async def parse_team_members(form: FormData) -> List[Tuple[TeamMemberIn, CollegeIdDocument]]:
    """Read teamMember_<i> JSON parts and their teamMember_<i>_collegeId files"""
    indices = sorted(
        int(match.group(1))
        for match in (TEAM_MEMBER_FIELD.match(key) for key in form.keys())
        if match
    )
    members = []
    for position, index in enumerate(indices):
        label = f"Team member {position + 1}: "
        raw = form.get(f"teamMember_{index}")
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            raise RegistrationError(f"{label}invalid member data")
        if not isinstance(data, dict):
            raise RegistrationError(f"{label}invalid member data")

        try:
            member = TeamMemberIn.model_validate(data)
        except ValidationError as e:
            raise RegistrationError(f"{label}{first_error_message(e)}")

        document = await read_document(form.get(f"teamMember_{index}_collegeId"))
        members.append((member, _check_document(document, label)))
    return members


def check_event(event_id: str) -> Event:
    event = get_event_by_id(event_id)
    if event is None:
        raise RegistrationError("Invalid event selected")
    status = effective_registration_status(event.registration_status)
    if status != "open":
        raise EventClosedError(f"Registration is {status.replace('-', ' ')} for {event.name}")
    return event


def check_team(event: Event, registrant: PersonBase, members: List[Tuple[TeamMemberIn, CollegeIdDocument]]) -> None:
    lowest, highest = event.team_size.member_range
    if event.team_size.is_solo and members:
        raise RegistrationError(f"{event.name} does not accept team members")
    if not lowest <= len(members) <= highest:
        raise RegistrationError(
            f"{event.name} requires between {lowest} and {highest} team members besides you"
        )

    emails = [registrant.email] + [member.email for member, _ in members]
    if len(set(emails)) != len(emails):
        raise RegistrationError("Each team member must have a unique email address")


def find_existing(db: Session, email: str, event_id: str) -> Optional[Registration]:
    return db.query(Registration).filter(
        Registration.email == email,
        Registration.event_id == event_id,
    ).first()


def already_registered_response(email: str) -> RegistrationResponse:
    return RegistrationResponse(
        registration_token=generate_registration_token(email),
        email_sent=False,
        already_registered=True,
        message="You have already registered for this event",
    )


def save_registration(db: Session, registration: Registration) -> bool:
    """
    Commit a new registration; False when a concurrent duplicate won the race.

    The stored college IDs are removed whenever the commit fails.
    """
    uploads = [registration.college_id_path] + [m.college_id_path for m in registration.team_members]
    try:
        db.add(registration)
        db.commit()
    except IntegrityError:
        db.rollback()
        remove_college_ids(uploads)
        return False
    except SQLAlchemyError as e:
        db.rollback()
        remove_college_ids(uploads)
        logger.error("Failed to save registration for %s: %s", mask_email(registration.email), e)
        raise RegistrationError("Failed to save registration. Please try again.", status_code=500)
    db.refresh(registration)
    return True


def registration_response(registration: Registration, result: EmailResult) -> RegistrationResponse:
    message = "Registration successful"
    if not result.success:
        message = "Registration successful, but the confirmation email could not be sent"
    return RegistrationResponse(
        registration_token=generate_registration_token(registration.email),
        email_sent=result.success,
        message=message,
        email_error=result.error,
        email_details=result.details,
    )


@router.post("/techelonsregistration", response_model=RegistrationResponse)
async def register_for_techelons(request: Request, db: Session = Depends(get_db)):
    """Register a participant (and their team) for a Techelons event"""
    form = await request.form()

    try:
        registrant = RegistrationIn.model_validate(_text_fields(form))
    except ValidationError as e:
        raise RegistrationError(first_error_message(e))
    document = _check_document(await read_document(form.get("collegeId")))

    event = check_event(registrant.event)
    members = await parse_team_members(form)
    check_team(event, registrant, members)

    if find_existing(db, registrant.email, event.id):
        logger.info("Duplicate registration for %s in %s", mask_email(registrant.email), event.id)
        return already_registered_response(registrant.email)

    registration = Registration(
        kind="techelons",
        event_id=event.id,
        name=registrant.name,
        email=registrant.email,
        phone=registrant.phone,
        roll_no=registrant.roll_no,
        college=registrant.college,
        other_college=registrant.other_college,
        college_id_path=save_college_id(document),
        course=registrant.course,
        year=registrant.year,
        query=registrant.query,
    )
    for position, (member, member_document) in enumerate(members):
        registration.team_members.append(TeamMember(
            position=position,
            name=member.name,
            email=member.email,
            phone=member.phone,
            roll_no=member.roll_no,
            college=member.college,
            other_college=member.other_college,
            college_id_path=save_college_id(member_document),
        ))

    if not save_registration(db, registration):
        return already_registered_response(registrant.email)

    result = await run_in_threadpool(
        send_techelons_confirmation, registration.email, registration.name, event.id
    )
    for member in registration.team_members:
        member_result = await run_in_threadpool(
            send_techelons_confirmation, member.email, member.name, event.id, True, registration.name
        )
        if not member_result.success:
            logger.warning("Team member email failed for %s: %s", mask_email(member.email), member_result.error)

    registration.email_sent = result.success
    db.commit()

    logger.info(
        "Registered %s for %s with %d team members", mask_email(registration.email), event.id, len(members)
    )
    return registration_response(registration, result)


@router.post("/workshopregistration", response_model=RegistrationResponse)
async def register_for_workshop(request: Request, db: Session = Depends(get_db)):
    """Register a single participant for the workshop"""
    form = await request.form()

    try:
        registrant = WorkshopRegistrationIn.model_validate(_text_fields(form))
    except ValidationError as e:
        raise RegistrationError(first_error_message(e))
    document = _check_document(await read_document(form.get("collegeId")))

    if find_existing(db, registrant.email, WORKSHOP_EVENT_ID):
        return already_registered_response(registrant.email)

    registration = Registration(
        kind="workshop",
        event_id=WORKSHOP_EVENT_ID,
        name=registrant.name,
        email=registrant.email,
        phone=registrant.phone,
        roll_no=registrant.roll_no,
        college=registrant.college,
        other_college=registrant.other_college,
        college_id_path=save_college_id(document),
        course=registrant.course,
        year=registrant.year,
        query=registrant.query,
    )
    if not save_registration(db, registration):
        return already_registered_response(registrant.email)

    result = await run_in_threadpool(
        send_workshop_confirmation,
        registration.email,
        registration.name,
        f"Registration Confirmed: {WORKSHOP_NAME}",
        generate_workshop_template(registration.name, WORKSHOP_NAME),
    )
    registration.email_sent = result.success
    db.commit()

    return registration_response(registration, result)
