import io
import logging
from typing import List, Optional

import pandas as pd
from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from src.models.database import get_db
from src.models.registration import Registration
from src.models.schemas import EmailSendResponse, RegistrationRecord
from src.utils.email_service import (
    generate_workshop_template, send_techelons_confirmation, send_workshop_confirmation
)
from src.app.dependencies import api_key_dependency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/registrations", tags=["admin"])

EXPORT_COLUMNS = [
    "id", "kind", "event_id", "name", "email", "phone", "roll_no", "college",
    "other_college", "course", "year", "query", "team_size", "team_members", "email_sent", "created_at",
]

@router.get("", response_model=List[RegistrationRecord])
async def list_registrations(
    event: Optional[str] = None,
    db: Session = Depends(get_db),
    api_key: str = api_key_dependency
):
    """Get all registrations, optionally for one event"""
    query = db.query(Registration)
    if event:
        query = query.filter(Registration.event_id == event)
    return query.order_by(Registration.id).all()

@router.get("/export")
async def export_registrations(
    event: Optional[str] = None,
    db: Session = Depends(get_db),
    api_key: str = api_key_dependency
):
    """Download registrations as CSV, one row per registrant"""
    query = db.query(Registration)
    if event:
        query = query.filter(Registration.event_id == event)

    rows = []
    for registration in query.order_by(Registration.id).all():
        rows.append({
            "id": registration.id,
            "kind": registration.kind,
            "event_id": registration.event_id,
            "name": registration.name,
            "email": registration.email,
            "phone": registration.phone,
            "roll_no": registration.roll_no,
            "college": registration.college,
            "other_college": registration.other_college,
            "course": registration.course,
            "year": registration.year,
            "query": registration.query,
            "team_size": len(registration.team_members) + 1,
            "team_members": "; ".join(f"{m.name} <{m.email}>" for m in registration.team_members),
            "email_sent": registration.email_sent,
            "created_at": registration.created_at,
        })

    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    buffer = io.StringIO()
    df.to_csv(buffer, index=False)
    filename = f"registrations-{event}.csv" if event else "registrations.csv"
    return StreamingResponse(
        iter([buffer.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )

@router.post("/{registration_id}/resend-email", response_model=EmailSendResponse)
async def resend_confirmation(
    registration_id: int,
    db: Session = Depends(get_db),
    api_key: str = api_key_dependency
):
    """Send the confirmation email again to a registrant and their team"""
    registration = db.query(Registration).filter(Registration.id == registration_id).first()
    if not registration:
        raise HTTPException(status_code=404, detail="Registration not found")

    if registration.kind == "workshop":
        results = {registration.email: await run_in_threadpool(
            send_workshop_confirmation,
            registration.email,
            registration.name,
            "Registration Confirmed: Workshop",
            generate_workshop_template(registration.name, "the workshop"),
        )}
    else:
        results = {registration.email: await run_in_threadpool(
            send_techelons_confirmation, registration.email, registration.name, registration.event_id
        )}
        for member in registration.team_members:
            results[member.email] = await run_in_threadpool(
                send_techelons_confirmation, member.email, member.name, registration.event_id,
                True, registration.name
            )

    emails_sent = sum(1 for result in results.values() if result.success)
    failures = {email: result.error for email, result in results.items() if not result.success}

    if results[registration.email].success:
        registration.email_sent = True
        db.commit()

    message = f"Successfully sent {emails_sent} confirmation emails"
    if failures:
        message += f". Failed to send {len(failures)} emails"

    return EmailSendResponse(
        success=not failures,
        message=message,
        emails_sent=emails_sent,
        failures=failures
    )

@router.delete("/all")
async def delete_all_registrations(
    db: Session = Depends(get_db),
    api_key: str = api_key_dependency
):
    """Delete all registrations from the database"""
    try:
        for registration in db.query(Registration).all():
            db.delete(registration)
        db.commit()
        return {"message": "All registrations deleted successfully"}
    except Exception as e:
        db.rollback()
        logger.error("Error deleting registrations: %s", e)
        raise HTTPException(status_code=500, detail=f"Error deleting registrations: {str(e)}")

@router.delete("/{registration_id}")
async def delete_registration(
    registration_id: int,
    db: Session = Depends(get_db),
    api_key: str = api_key_dependency
):
    """Delete a specific registration"""
    registration = db.query(Registration).filter(Registration.id == registration_id).first()
    if not registration:
        raise HTTPException(status_code=404, detail="Registration not found")
    
    db.delete(registration)
    db.commit()
    
    return {"message": "Registration deleted successfully"}
