from diaglab.services import notification_service
from diaglab.services.notification_service import NotificationService


def test_tasks_run_eagerly_in_tests():
    result = notification_service.send_order_notification_task.delay("u1", 7, "ORD-20260101-0001")
    assert result.get() == {"user_id": "u1", "order_id": 7, "status": "sent"}


def test_enqueue_failure_is_swallowed(monkeypatch):
    def broker_down(*args, **kwargs):
        raise ConnectionError("broker unreachable")

    monkeypatch.setattr(notification_service.send_order_notification_task, "delay", broker_down)
    monkeypatch.setattr(notification_service.send_appointment_notification_task, "delay", broker_down)

    NotificationService.send_order_notification("u1", 7, "ORD-20260101-0001")
    NotificationService.send_appointment_notification("u1", 3, "2026-01-02", "09:00-12:00")
