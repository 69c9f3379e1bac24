"""Person validation rules shared by the registration form and the API."""
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from email_validator import EmailNotValidError, validate_email as _check_email

MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
ACCEPTED_FILE_TYPES = ("image/jpeg", "image/jpg", "image/png", "application/pdf")

COLLEGE_CHOICES = ("Shivaji College", "Other")
OTHER_COLLEGE = "Other"
YEAR_CHOICES = ("1st Year", "2nd Year", "3rd Year")

PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")

# Wire names of the person fields, in the order errors are reported
PERSON_FIELDS = ("name", "email", "phone", "rollNo", "college", "otherCollege", "collegeId")


@dataclass(frozen=True)
class CollegeIdDocument:
    """An uploaded identity document (college ID card)."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _length_error(value: Any, minimum: int, maximum: int, required_msg: str, label: str) -> Optional[str]:
    text = _text(value)
    if len(text) < minimum:
        return required_msg
    if len(text) > maximum:
        return f"{label} must be at most {maximum} characters"
    return None


def validate_name(value: Any) -> Optional[str]:
    return _length_error(value, 2, 50, "Name is required", "Name")


def validate_email(value: Any) -> Optional[str]:
    try:
        _check_email(_text(value), check_deliverability=False)
    except EmailNotValidError:
        return "Invalid email address"
    return None


def validate_phone(value: Any) -> Optional[str]:
    phone = _text(value)
    if len(phone) != 10:
        return "Phone number must be exactly 10 digits"
    if not PHONE_PATTERN.match(phone):
        return "Please enter a valid Indian mobile number"
    return None


def validate_roll_no(value: Any) -> Optional[str]:
    return _length_error(value, 2, 20, "Roll No. is required", "Roll No.")


def validate_college(value: Any) -> Optional[str]:
    if value not in COLLEGE_CHOICES:
        return "Please select your college"
    return None


def validate_other_college(value: Any, college: Any) -> Optional[str]:
    """Only validated when the sibling ``college`` field is "Other"."""
    if college != OTHER_COLLEGE:
        return None
    return _length_error(value, 2, 100, "College name is required", "College name")


def validate_college_id(document: Optional[CollegeIdDocument]) -> Optional[str]:
    if document is None or not document.content:
        return "College ID is required"
    if document.size > MAX_FILE_SIZE:
        return "Max file size is 5MB"
    if document.content_type not in ACCEPTED_FILE_TYPES:
        return "Only .jpg, .jpeg, .png and .pdf files are accepted"
    return None


def normalize_person(person: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of the person fields with the other-college name cleared
    unless ``college`` is "Other".
    """
    normalized = {key: person.get(key) for key in PERSON_FIELDS if key != "collegeId"}
    if normalized.get("college") != OTHER_COLLEGE:
        normalized["otherCollege"] = None
    return normalized


def validate_person(person: Mapping[str, Any], document: Optional[CollegeIdDocument]) -> Dict[str, str]:
    """
    Validate one person (registrant or team member).

    Args:
        person: Mapping with the wire field names (name, email, phone,
            rollNo, college, otherCollege)
        document: The uploaded college ID, or None

    Returns:
        Dict of field name -> error message, in PERSON_FIELDS order.
        Empty when the person is valid.
    """
    checks = (
        ("name", validate_name(person.get("name"))),
        ("email", validate_email(person.get("email"))),
        ("phone", validate_phone(person.get("phone"))),
        ("rollNo", validate_roll_no(person.get("rollNo"))),
        ("college", validate_college(person.get("college"))),
        ("otherCollege", validate_other_college(person.get("otherCollege"), person.get("college"))),
        ("collegeId", validate_college_id(document)),
    )
    return {field: message for field, message in checks if message}


def validate_registration_details(details: Mapping[str, Any]) -> Dict[str, str]:
    """Validate the registrant-only fields: event, course, year and query."""
    errors = {}
    if not _text(details.get("event")):
        errors["event"] = "Event selection is required"

    course_error = _length_error(details.get("course"), 2, 50, "Course is required", "Course")
    if course_error:
        errors["course"] = course_error

    if details.get("year") not in YEAR_CHOICES:
        errors["year"] = "Please select your year of study"

    if len(_text(details.get("query"))) > 500:
        errors["query"] = "Query must be at most 500 characters"
    return errors
