# diaglab/services/notification_service.py
from diaglab.celery_worker import celery_app
from diaglab.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Sends customer notifications through Celery.
    A failure to enqueue is logged and never fails the request that triggered it.
    """

    @staticmethod
    def send_order_notification(user_id: str, order_id: int, order_number: str):
        try:
            send_order_notification_task.delay(user_id, order_id, order_number)
        except Exception as e:
            logger.warning(f"Could not enqueue notification for order {order_number}: {e}")

    @staticmethod
    def send_appointment_notification(user_id: str, appointment_id: int, appointment_date: str, appointment_time: str):
        try:
            send_appointment_notification_task.delay(user_id, appointment_id, appointment_date, appointment_time)
        except Exception as e:
            logger.warning(f"Could not enqueue notification for appointment {appointment_id}: {e}")


@celery_app.task(name="diaglab.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: str, order_id: int, order_number: str):
    # log-only until an email/SMS gateway is wired in
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_number} (id {order_id}) received")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}


@celery_app.task(name="diaglab.services.notification_service.send_appointment_notification_task")
def send_appointment_notification_task(user_id: str, appointment_id: int, appointment_date: str, appointment_time: str):
    logger.info(
        f"[NOTIFICATION] User {user_id}: appointment {appointment_id} "
        f"booked for {appointment_date} {appointment_time}"
    )
    return {"user_id": user_id, "appointment_id": appointment_id, "status": "sent"}
