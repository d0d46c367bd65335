# diaglab/repos/appointment_repo.py
from datetime import date

from sqlalchemy import select, or_, asc, desc
from sqlalchemy.orm import Session

from diaglab.data.models.appointment import AppointmentModel
from diaglab.domain.rules import ACTIVE_APPOINTMENT_STATUSES


class AppointmentRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_appointment(self, appointment_id: int, user_id: str) -> AppointmentModel | None:
        return self.db.execute(
            select(AppointmentModel).where(
                AppointmentModel.id == appointment_id,
                AppointmentModel.user_id == user_id,
            )
        ).scalars().unique().one_or_none()

    def list_appointments(
        self,
        user_id: str,
        *,
        search: str | None = None,
        appointment_type: str | None = None,
        status: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        sort: str = "appointmentDate",
        order: str = "desc",
        limit: int = 10,
        offset: int = 0,
    ) -> list[AppointmentModel]:
        query = select(AppointmentModel).where(AppointmentModel.user_id == user_id)

        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    AppointmentModel.technician_assigned.ilike(pattern),
                    AppointmentModel.lab_location.ilike(pattern),
                    AppointmentModel.customer_notes.ilike(pattern),
                )
            )
        if appointment_type:
            query = query.where(AppointmentModel.appointment_type == appointment_type)
        if status:
            query = query.where(AppointmentModel.status == status)
        if start_date:
            query = query.where(AppointmentModel.appointment_date >= start_date)
        if end_date:
            query = query.where(AppointmentModel.appointment_date <= end_date)

        column = AppointmentModel.appointment_date if sort == "appointmentDate" else AppointmentModel.created_at
        direction = asc if order == "asc" else desc
        query = query.order_by(direction(column), direction(AppointmentModel.id))

        return list(self.db.execute(query.limit(limit).offset(offset)).scalars().unique().all())

    def find_active_in_slot(
        self,
        user_id: str,
        appointment_date: date,
        appointment_time: str,
        exclude_id: int | None = None,
    ) -> AppointmentModel | None:
        query = select(AppointmentModel).where(
            AppointmentModel.user_id == user_id,
            AppointmentModel.appointment_date == appointment_date,
            AppointmentModel.appointment_time == appointment_time,
            AppointmentModel.status.in_(ACTIVE_APPOINTMENT_STATUSES),
        )
        if exclude_id is not None:
            query = query.where(AppointmentModel.id != exclude_id)
        return self.db.execute(query.limit(1)).scalars().unique().first()

    def add_appointment(self, appointment: AppointmentModel) -> AppointmentModel:
        self.db.add(appointment)
        self.db.flush()
        return appointment

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    def refresh(self, appointment: AppointmentModel):
        self.db.refresh(appointment)
