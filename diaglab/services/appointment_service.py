# diaglab/services/appointment_service.py
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from diaglab.data.models.appointment import AppointmentModel
from diaglab.domain.errors import (
    InvalidStatusTransition,
    NotFound,
    TimeSlotConflict,
    ValidationFailed,
)
from diaglab.domain.rules import (
    ACTIVE_APPOINTMENT_STATUSES,
    APPOINTMENT_STATUSES,
    APPOINTMENT_TYPES,
    allowed_slots,
    can_transition,
    clean_text,
    is_future_date,
    is_valid_slot,
    parse_date,
)
from diaglab.domain.schemas import AppointmentCreate, AppointmentOut, AppointmentPatch
from diaglab.repos.appointment_repo import AppointmentRepo
from diaglab.repos.order_repo import OrderRepo
from diaglab.services.notification_service import NotificationService
from diaglab.utils.logging import get_logger

logger = get_logger(__name__)


def _invalid_slot(appointment_type: str) -> ValidationFailed:
    slots = ", ".join(allowed_slots(appointment_type))
    return ValidationFailed(
        "INVALID_TIME_SLOT",
        f"Invalid time slot for {appointment_type}. Available slots: {slots}",
    )


def _future_date_or_fail(value: Any):
    parsed = parse_date(value)
    if parsed is None or not is_future_date(parsed):
        raise ValidationFailed("INVALID_APPOINTMENT_DATE", "Appointment date must be in the future")
    return parsed


class AppointmentService:
    """
    Appointment booking.

    Status follows the transition table in ``domain.rules``. One active booking
    per user and slot is checked up front and enforced again by the partial
    unique index, so a concurrent duplicate ends up as TIME_SLOT_CONFLICT too.
    """

    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        self.repo = AppointmentRepo(db)
        self.orders = OrderRepo(db)
        self.notification_service = notification_service or NotificationService()

    # =====================================================
    # QUERY
    # =====================================================
    def get_appointment(self, appointment_id: int, user_id: str) -> AppointmentModel:
        appointment = self.repo.get_appointment(appointment_id, user_id)
        if not appointment:
            raise NotFound("Appointment not found")
        return appointment

    def get_appointment_details(self, appointment_id: int, user_id: str) -> Dict[str, Any]:
        appointment = self.get_appointment(appointment_id, user_id)

        details = AppointmentOut.model_validate(appointment).model_dump()
        details["order_items"] = None

        if appointment.order_id:
            details["order_items"] = [
                {
                    "id": item.id,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "total_price": item.total_price,
                    "product": item.product,
                }
                for item in self.orders.get_order_items(appointment.order_id)
            ]
        return details

    def list_appointments(self, user_id: str, **filters) -> list[AppointmentModel]:
        # unknown type/status filters are ignored rather than matching nothing
        if filters.get("appointment_type") not in APPOINTMENT_TYPES:
            filters["appointment_type"] = None
        if filters.get("status") not in APPOINTMENT_STATUSES:
            filters["status"] = None
        return self.repo.list_appointments(user_id, **filters)

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_appointment(self, user_id: str, payload: AppointmentCreate) -> AppointmentModel:
        if not payload.appointment_type:
            raise ValidationFailed("MISSING_APPOINTMENT_TYPE", "Appointment type is required")

        appointment_type = payload.appointment_type.strip()
        if appointment_type not in APPOINTMENT_TYPES:
            raise ValidationFailed(
                "INVALID_APPOINTMENT_TYPE",
                "Invalid appointment type. Must be 'home_collection' or 'lab_visit'",
            )

        if not payload.appointment_date:
            raise ValidationFailed("MISSING_APPOINTMENT_DATE", "Appointment date is required")
        appointment_date = _future_date_or_fail(payload.appointment_date)

        if not payload.appointment_time:
            raise ValidationFailed("MISSING_APPOINTMENT_TIME", "Appointment time is required")
        appointment_time = payload.appointment_time.strip()
        if not is_valid_slot(appointment_time, appointment_type):
            raise _invalid_slot(appointment_type)

        lab_location = clean_text(payload.lab_location)
        if appointment_type == "lab_visit" and not lab_location:
            raise ValidationFailed("MISSING_LAB_LOCATION", "Lab location is required for lab visit appointments")

        if payload.order_id and not self.orders.get_order(payload.order_id, user_id):
            raise ValidationFailed("INVALID_ORDER_ID", "Order not found or does not belong to user")

        if payload.status and payload.status not in APPOINTMENT_STATUSES:
            raise ValidationFailed("INVALID_STATUS", "Invalid status")

        if self.repo.find_active_in_slot(user_id, appointment_date, appointment_time):
            raise TimeSlotConflict()

        appointment = AppointmentModel(
            user_id=user_id,
            order_id=payload.order_id or None,
            appointment_type=appointment_type,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            lab_location=lab_location,
            status=payload.status or "scheduled",
            customer_notes=clean_text(payload.customer_notes),
        )

        try:
            self.repo.add_appointment(appointment)
            self.repo.commit()
        except IntegrityError as e:
            #lost the race against a concurrent booking of the same slot
            self.repo.rollback()
            logger.warning(f"Slot {appointment_date} {appointment_time} taken concurrently for {user_id}")
            raise TimeSlotConflict() from e

        self.repo.refresh(appointment)
        logger.info(
            f"Appointment {appointment.id} booked for {user_id}: "
            f"{appointment_type} {appointment_date} {appointment_time}"
        )
        self.notification_service.send_appointment_notification(
            user_id, appointment.id, appointment_date.isoformat(), appointment_time
        )
        return appointment

    def update_appointment(self, appointment_id: int, user_id: str, patch: AppointmentPatch) -> AppointmentModel:
        appointment = self.get_appointment(appointment_id, user_id)
        sent = patch.model_fields_set
        updates = {}

        if "appointment_type" in sent:
            if patch.appointment_type not in APPOINTMENT_TYPES:
                raise ValidationFailed("INVALID_APPOINTMENT_TYPE", "Invalid appointment type")
            updates["appointment_type"] = patch.appointment_type

        if "appointment_date" in sent:
            updates["appointment_date"] = _future_date_or_fail(patch.appointment_date)

        if "appointment_time" in sent:
            updates["appointment_time"] = (
                patch.appointment_time.strip() if patch.appointment_time else patch.appointment_time
            )

        if "lab_location" in sent:
            updates["lab_location"] = clean_text(patch.lab_location)

        # a type change alone must still leave a valid slot and location
        effective_type = updates.get("appointment_type", appointment.appointment_type)
        if "appointment_type" in updates or "appointment_time" in updates:
            slot = updates.get("appointment_time", appointment.appointment_time)
            if not is_valid_slot(slot, effective_type):
                raise _invalid_slot(effective_type)

        relocated = "appointment_type" in updates or "lab_location" in updates
        if relocated and effective_type == "lab_visit" and not updates.get("lab_location", appointment.lab_location):
            raise ValidationFailed("MISSING_LAB_LOCATION", "Lab location is required for lab visit appointments")

        if "status" in sent:
            if patch.status not in APPOINTMENT_STATUSES:
                raise ValidationFailed("INVALID_STATUS", "Invalid status")
            if not can_transition(appointment.status, patch.status):
                raise InvalidStatusTransition(appointment.status, patch.status)
            updates["status"] = patch.status

        for field in ("technician_assigned", "customer_notes", "technician_notes"):
            if field in sent:
                updates[field] = clean_text(getattr(patch, field))

        moved = "appointment_date" in updates or "appointment_time" in updates
        if moved and updates.get("status", appointment.status) in ACTIVE_APPOINTMENT_STATUSES:
            taken = self.repo.find_active_in_slot(
                user_id,
                updates.get("appointment_date", appointment.appointment_date),
                updates.get("appointment_time", appointment.appointment_time),
                exclude_id=appointment.id,
            )
            if taken:
                raise TimeSlotConflict()

        for field, value in updates.items():
            setattr(appointment, field, value)

        try:
            self.repo.commit()
        except IntegrityError as e:
            self.repo.rollback()
            raise TimeSlotConflict() from e

        self.repo.refresh(appointment)
        logger.info(f"Appointment {appointment_id} updated: {sorted(updates)}")
        return appointment

    def cancel_appointment(self, appointment_id: int, user_id: str) -> Dict[str, Any]:
        """
        Soft delete. Any non-terminal appointment can be cancelled, a cancelled
        one stays as it is and a completed one cannot be cancelled.
        """
        appointment = self.get_appointment(appointment_id, user_id)

        if appointment.status == "completed":
            raise InvalidStatusTransition(appointment.status, "cancelled")

        if appointment.status != "cancelled":
            appointment.status = "cancelled"
            self.repo.commit()
            self.repo.refresh(appointment)
            logger.info(f"Appointment {appointment_id} cancelled by {user_id}")

        return {"message": "Appointment cancelled successfully", "appointment": appointment}
