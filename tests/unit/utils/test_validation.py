"""Unit tests for the shared person validation rules."""
import pytest

from src.utils.validation import (
    MAX_FILE_SIZE,
    CollegeIdDocument,
    normalize_person,
    validate_college_id,
    validate_other_college,
    validate_person,
    validate_phone,
    validate_registration_details,
)


@pytest.fixture
def valid_person():
    return {
        "name": "Riya Sharma",
        "email": "riya@du.ac.in",
        "phone": "9876543210",
        "rollNo": "CS-21-045",
        "college": "Shivaji College",
        "otherCollege": None,
    }


class TestValidatePhone:
    """Test Indian mobile number validation."""

    def test_valid_number(self):
        assert validate_phone("9999999999") is None

    def test_leading_digit_below_six(self):
        assert validate_phone("5999999999") == "Please enter a valid Indian mobile number"

    def test_eleven_digits(self):
        assert validate_phone("99999999990") == "Phone number must be exactly 10 digits"

    def test_non_digits(self):
        assert validate_phone("98765abcde") == "Please enter a valid Indian mobile number"

    @pytest.mark.parametrize("leading", ["6", "7", "8", "9"])
    def test_each_allowed_leading_digit(self, leading):
        assert validate_phone(leading + "123456789") is None


class TestValidateCollegeId:
    """Test identity document rules."""

    def test_missing_document(self):
        assert validate_college_id(None) == "College ID is required"

    def test_empty_document(self):
        document = CollegeIdDocument("id.png", "image/png", b"")
        assert validate_college_id(document) == "College ID is required"

    def test_document_at_size_limit(self):
        document = CollegeIdDocument("id.pdf", "application/pdf", b"x" * MAX_FILE_SIZE)
        assert validate_college_id(document) is None

    def test_document_too_large(self):
        document = CollegeIdDocument("id.pdf", "application/pdf", b"x" * (MAX_FILE_SIZE + 1))
        assert validate_college_id(document) == "Max file size is 5MB"

    def test_unsupported_type(self):
        document = CollegeIdDocument("id.gif", "image/gif", b"GIF89a")
        assert validate_college_id(document) == "Only .jpg, .jpeg, .png and .pdf files are accepted"


class TestOtherCollege:
    """The other-college name depends on the sibling college value."""

    def test_required_when_other(self):
        assert validate_other_college("", "Other") == "College name is required"

    def test_ignored_for_shivaji_college(self):
        assert validate_other_college("", "Shivaji College") is None

    def test_too_long(self):
        assert validate_other_college("x" * 101, "Other") == "College name must be at most 100 characters"

    def test_normalize_clears_other_college(self):
        person = {"college": "Shivaji College", "otherCollege": "Hansraj College"}
        assert normalize_person(person)["otherCollege"] is None

    def test_normalize_keeps_other_college(self):
        person = {"college": "Other", "otherCollege": "Hansraj College"}
        assert normalize_person(person)["otherCollege"] == "Hansraj College"


class TestValidatePerson:
    """Test the composed person validator."""

    def test_valid_person(self, valid_person, make_document):
        assert validate_person(valid_person, make_document()) == {}

    def test_errors_follow_field_order(self, valid_person):
        valid_person.update({"name": "A", "phone": "123"})
        errors = validate_person(valid_person, None)
        assert list(errors) == ["name", "phone", "collegeId"]
        assert errors["name"] == "Name is required"

    def test_invalid_email(self, valid_person, make_document):
        valid_person["email"] = "not-an-email"
        assert validate_person(valid_person, make_document()) == {"email": "Invalid email address"}

    def test_other_college_without_name(self, valid_person, make_document):
        valid_person["college"] = "Other"
        errors = validate_person(valid_person, make_document())
        assert errors == {"otherCollege": "College name is required"}

    def test_unknown_college(self, valid_person, make_document):
        valid_person["college"] = "Hansraj College"
        assert validate_person(valid_person, make_document()) == {"college": "Please select your college"}

    def test_name_length_limit(self, valid_person, make_document):
        valid_person["name"] = "x" * 51
        assert validate_person(valid_person, make_document())["name"] == "Name must be at most 50 characters"


class TestRegistrationDetails:
    """Test registrant-only fields."""

    def test_valid_details(self):
        details = {"event": "hackathon", "course": "B.Sc. CS", "year": "2nd Year", "query": ""}
        assert validate_registration_details(details) == {}

    def test_missing_everything(self):
        errors = validate_registration_details({})
        assert list(errors) == ["event", "course", "year"]

    def test_query_too_long(self):
        details = {"event": "hackathon", "course": "B.Sc. CS", "year": "1st Year", "query": "q" * 501}
        assert validate_registration_details(details) == {"query": "Query must be at most 500 characters"}
