# diaglab/api/routers/appointments.py
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from diaglab.api.deps import Page, get_current_user, json_body, optional_id, parse_body, required_id
from diaglab.data.database import get_db
from diaglab.data.models.user import UserModel
from diaglab.domain.errors import ValidationFailed
from diaglab.domain.rules import parse_date
from diaglab.domain.schemas import (
    AppointmentCancelOut,
    AppointmentCreate,
    AppointmentDetailOut,
    AppointmentOut,
    AppointmentPatch,
)
from diaglab.services.appointment_service import AppointmentService

router = APIRouter(prefix="/api/appointments", tags=["appointments"])


def get_service(db: Session = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)


def _date_filter(name: str, value: Optional[str]):
    if value is None:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationFailed("INVALID_DATE_FILTER", f"'{name}' must be an ISO date")
    return parsed


@router.get("", response_model=Union[AppointmentDetailOut, List[AppointmentOut]])
def get_appointments(
    current_user: UserModel = Depends(get_current_user),
    appointment_id: Optional[int] = Depends(optional_id),
    search: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    sort: str = Query("appointmentDate"),
    order: str = Query("desc"),
    page: Page = Depends(),
    svc: AppointmentService = Depends(get_service),
):
    if appointment_id is not None:
        return svc.get_appointment_details(appointment_id, current_user.id)

    return svc.list_appointments(
        current_user.id,
        search=search,
        appointment_type=type,
        status=status,
        start_date=_date_filter("start_date", start_date),
        end_date=_date_filter("end_date", end_date),
        sort=sort,
        order=order,
        limit=page.limit,
        offset=page.offset,
    )


@router.post("", response_model=AppointmentOut, status_code=201)
def create_appointment(
    current_user: UserModel = Depends(get_current_user),
    body: dict = Depends(json_body),
    svc: AppointmentService = Depends(get_service),
):
    return svc.create_appointment(current_user.id, parse_body(AppointmentCreate, body))


@router.put("", response_model=AppointmentOut)
def update_appointment(
    current_user: UserModel = Depends(get_current_user),
    appointment_id: int = Depends(required_id),
    body: dict = Depends(json_body),
    svc: AppointmentService = Depends(get_service),
):
    return svc.update_appointment(appointment_id, current_user.id, parse_body(AppointmentPatch, body))


@router.delete("", response_model=AppointmentCancelOut)
def cancel_appointment(
    current_user: UserModel = Depends(get_current_user),
    appointment_id: int = Depends(required_id),
    svc: AppointmentService = Depends(get_service),
):
    """Soft delete: the appointment is kept with status 'cancelled'."""
    return svc.cancel_appointment(appointment_id, current_user.id)
