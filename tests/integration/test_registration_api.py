"""Integration tests for the registration endpoints."""
import json
import os

import pytest
from unittest.mock import patch
from sqlalchemy.exc import OperationalError

from src.models.registration import Registration
from src.utils.helpers import decode_registration_token

PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 64


def person(index):
    return {
        "name": f"Student {index}",
        "email": f"student{index}@du.ac.in",
        "phone": f"98765432{index:02d}",
        "rollNo": f"CS-{index:03d}",
        "college": "Shivaji College",
    }


def registration_form(event="hackathon", members=1):
    data = dict(person(0))
    data.update({"event": event, "course": "B.Sc. Computer Science", "year": "2nd Year"})
    files = [("collegeId", ("id0.png", PNG, "image/png"))]
    for index in range(members):
        data[f"teamMember_{index}"] = json.dumps(person(index + 1))
        files.append((f"teamMember_{index}_collegeId", (f"id{index + 1}.png", PNG, "image/png")))
    return data, files


def post(client, data, files, path="/api/techelonsregistration"):
    return client.post(path, data=data, files=files)


class TestTechelonsRegistration:
    def test_successful_team_registration(self, client, sent_emails, db_session_factory, upload_dir):
        data, files = registration_form(members=2)
        response = post(client, data, files)

        assert response.status_code == 200
        body = response.json()
        assert body["emailSent"] is True
        assert body["alreadyRegistered"] is False
        assert decode_registration_token(body["registrationToken"]).startswith("student0@du.ac.in|")

        db = db_session_factory()
        registration = db.query(Registration).one()
        assert registration.event_id == "hackathon"
        assert registration.email_sent is True
        assert [m.email for m in registration.team_members] == ["student1@du.ac.in", "student2@du.ac.in"]
        assert os.path.exists(registration.college_id_path)
        assert len(os.listdir(upload_dir)) == 3
        db.close()

        recipients = [email["to"] for email in sent_emails]
        assert recipients == ["student0@du.ac.in", "student1@du.ac.in", "student2@du.ac.in"]
        assert sent_emails[1]["subject"].startswith("Team Registration Confirmed")

    def test_token_opens_confirmation_page(self, client, sent_emails):
        data, files = registration_form()
        token = post(client, data, files).json()["registrationToken"]
        page = client.get("/formsubmitted/techelons", params={"token": token, "event": "hackathon"},
                          follow_redirects=False)
        assert page.status_code == 200

    def test_duplicate_registration(self, client, sent_emails, db_session_factory):
        data, files = registration_form()
        post(client, data, files)
        response = post(client, data, files)

        assert response.status_code == 200
        assert response.json()["alreadyRegistered"] is True
        db = db_session_factory()
        assert db.query(Registration).count() == 1
        db.close()
        assert len(sent_emails) == 2

    def test_email_failure_does_not_fail_registration(self, client, db_session_factory):
        data, files = registration_form(event="web-design", members=0)
        response = post(client, data, files)

        assert response.status_code == 200
        body = response.json()
        assert body["emailSent"] is False
        assert body["emailError"] == "Email service not configured"
        db = db_session_factory()
        assert db.query(Registration).one().email_sent is False
        db.close()

    def test_too_few_team_members(self, client, sent_emails):
        data, files = registration_form(event="coding-relay", members=0)
        response = post(client, data, files)
        assert response.status_code == 400
        assert "between 2 and 2 team members" in response.json()["error"]

    def test_solo_event_rejects_team(self, client, sent_emails):
        data, files = registration_form(event="web-design", members=1)
        response = post(client, data, files)
        assert response.status_code == 400
        assert response.json()["error"] == "Web Design Challenge does not accept team members"

    def test_duplicate_team_emails(self, client, sent_emails):
        data, files = registration_form(members=1)
        data["teamMember_0"] = json.dumps(person(0))
        response = post(client, data, files)
        assert response.status_code == 400
        assert "unique email" in response.json()["error"]

    def test_invalid_team_member(self, client, sent_emails):
        data, files = registration_form(members=1)
        member = person(1)
        member["phone"] = "5999999999"
        data["teamMember_0"] = json.dumps(member)
        response = post(client, data, files)
        assert response.status_code == 400
        assert response.json()["error"] == "Team member 1: Please enter a valid Indian mobile number"

    def test_missing_team_member_file(self, client, sent_emails):
        data, files = registration_form(members=1)
        response = post(client, data, files[:1])
        assert response.status_code == 400
        assert response.json()["error"] == "Team member 1: College ID is required"

    def test_invalid_registrant(self, client, sent_emails):
        data, files = registration_form()
        data["phone"] = "99999999990"
        response = post(client, data, files)
        assert response.status_code == 400
        assert response.json()["error"] == "Phone number must be exactly 10 digits"

    def test_wrong_file_type(self, client, sent_emails):
        data, files = registration_form(members=1)
        files[0] = ("collegeId", ("id.gif", b"GIF89a", "image/gif"))
        response = post(client, data, files)
        assert response.status_code == 400
        assert "Only .jpg" in response.json()["error"]

    def test_unknown_event(self, client, sent_emails):
        data, files = registration_form(event="no-such-event", members=0)
        response = post(client, data, files)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid event selected"

    @pytest.mark.parametrize("event,status", [("robo-race", "coming soon"), ("treasure-hunt", "closed")])
    def test_event_not_open(self, client, sent_emails, event, status):
        data, files = registration_form(event=event, members=1)
        response = post(client, data, files)
        assert response.status_code == 409
        assert status in response.json()["error"]

    def test_failed_commit_removes_uploads(self, client, sent_emails, upload_dir):
        data, files = registration_form(members=2)
        failure = OperationalError("INSERT INTO registrations", {}, Exception("disk I/O error"))

        with patch("sqlalchemy.orm.Session.commit", side_effect=failure):
            response = post(client, data, files)

        assert response.status_code == 500
        assert os.listdir(upload_dir) == []
        assert sent_emails == []

    def test_duplicate_race_removes_uploads(self, client, sent_emails, upload_dir, db_session_factory):
        data, files = registration_form(members=1)
        post(client, data, files)

        with patch("src.app.routes.registrations.find_existing", return_value=None):
            response = post(client, data, files)

        assert response.status_code == 200
        assert response.json()["alreadyRegistered"] is True
        db = db_session_factory()
        registration = db.query(Registration).one()
        stored = {registration.college_id_path, registration.team_members[0].college_id_path}
        db.close()
        assert {os.path.join(upload_dir, name) for name in os.listdir(upload_dir)} == stored

    def test_global_registration_switch(self, client, sent_emails, monkeypatch):
        monkeypatch.setenv("REGISTRATION_OPEN", "false")
        data, files = registration_form()
        assert post(client, data, files).status_code == 409


class TestWorkshopRegistration:
    def test_successful_registration(self, client, sent_emails, db_session_factory):
        data = dict(person(0))
        data.update({"course": "B.A. Programme", "year": "1st Year"})
        files = [("collegeId", ("id.pdf", b"%PDF-1.4", "application/pdf"))]

        response = post(client, data, files, path="/api/workshopregistration")

        assert response.status_code == 200
        assert response.json()["emailSent"] is True
        db = db_session_factory()
        registration = db.query(Registration).one()
        assert registration.kind == "workshop"
        assert registration.college_id_path.endswith(".pdf")
        db.close()
        assert sent_emails[0]["subject"].startswith("Registration Confirmed")

    def test_other_college_required(self, client, sent_emails):
        data = dict(person(0))
        data.update({"college": "Other", "course": "B.A. Programme", "year": "1st Year"})
        files = [("collegeId", ("id.pdf", b"%PDF-1.4", "application/pdf"))]
        response = post(client, data, files, path="/api/workshopregistration")
        assert response.status_code == 400
        assert response.json()["error"] == "College name is required"
