from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

from src.utils.validation import (
    normalize_person,
    validate_college,
    validate_email,
    validate_name,
    validate_other_college,
    validate_phone,
    validate_registration_details,
    validate_roll_no,
)


def _raise_if(message: Optional[str]) -> None:
    if message:
        raise ValueError(message)


class PersonBase(BaseModel):
    """Fields shared by the registrant and every team member (wire names)"""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str
    email: str
    phone: str
    roll_no: str = Field(alias="rollNo")
    college: str
    other_college: Optional[str] = Field(default=None, alias="otherCollege")

    @field_validator("name")
    @classmethod
    def check_name(cls, value):
        _raise_if(validate_name(value))
        return value

    @field_validator("email")
    @classmethod
    def check_email(cls, value):
        _raise_if(validate_email(value))
        return value.lower()

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value):
        _raise_if(validate_phone(value))
        return value

    @field_validator("roll_no")
    @classmethod
    def check_roll_no(cls, value):
        _raise_if(validate_roll_no(value))
        return value

    @field_validator("college")
    @classmethod
    def check_college(cls, value):
        _raise_if(validate_college(value))
        return value

    @model_validator(mode="after")
    def check_other_college(self):
        _raise_if(validate_other_college(self.other_college, self.college))
        self.other_college = normalize_person(
            {"college": self.college, "otherCollege": self.other_college}
        )["otherCollege"]
        return self


class TeamMemberIn(PersonBase):
    pass


class RegistrationIn(PersonBase):
    event: str
    course: str
    year: str
    query: Optional[str] = None

    @model_validator(mode="after")
    def check_details(self):
        errors = validate_registration_details(
            {"event": self.event, "course": self.course, "year": self.year, "query": self.query}
        )
        if errors:
            raise ValueError(next(iter(errors.values())))
        return self


class WorkshopRegistrationIn(PersonBase):
    course: str
    year: str
    query: Optional[str] = None

    @model_validator(mode="after")
    def check_details(self):
        errors = validate_registration_details(
            {"event": "workshop", "course": self.course, "year": self.year, "query": self.query}
        )
        if errors:
            raise ValueError(next(iter(errors.values())))
        return self


class EmailResult(BaseModel):
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    details: Optional[str] = None
    code: Optional[str] = None


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    registration_token: str = Field(serialization_alias="registrationToken")
    email_sent: bool = Field(serialization_alias="emailSent")
    already_registered: bool = Field(default=False, serialization_alias="alreadyRegistered")
    message: str
    email_error: Optional[str] = Field(default=None, serialization_alias="emailError")
    email_details: Optional[str] = Field(default=None, serialization_alias="emailDetails")


class TeamMemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    position: int
    name: str
    email: str
    phone: str
    roll_no: str
    college: str
    other_college: Optional[str] = None


class RegistrationRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: str
    event_id: str
    name: str
    email: str
    phone: str
    roll_no: str
    college: str
    other_college: Optional[str] = None
    course: str
    year: str
    query: Optional[str] = None
    email_sent: bool
    created_at: Optional[datetime] = None
    team_members: List[TeamMemberResponse] = []


class EmailSendResponse(BaseModel):
    success: bool
    message: str
    emails_sent: int
    failures: Dict[str, Any] = {}
