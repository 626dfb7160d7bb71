import asyncio
import json

import httpx
import pytest
from fastapi import BackgroundTasks

from conftest import auth_headers
from servicedome.domain.notifications.dispatch import (
    ArqPushDispatcher,
    BackgroundPushDispatcher,
    PushDispatcher,
    build_push_dispatcher,
)
from servicedome.domain.notifications.service import NotificationService
from servicedome.errors import NotFound
from servicedome.models import Notification
from servicedome.services.push_service import ExpoPushClient, is_expo_push_token
from servicedome.worker import send_push_notification_task


def test_log_is_newest_first_and_capped(db, customer, notification_service):
    for i in range(55):
        notification_service.notify(customer.id, "info", f"Title {i}", f"Message {i}")

    entries = notification_service.list_notifications(customer.id)
    assert len(entries) == 50
    assert entries[0].title == "Title 54"
    assert entries[-1].title == "Title 5"
    assert db.query(Notification).filter_by(user_id=customer.id).count() == 50


def test_trim_is_per_user(db, customer, vendor):
    service = NotificationService(db, log_limit=3)
    for i in range(5):
        service.notify(customer.id, "info", "c", str(i))
    service.notify(vendor.id, "job", "v", "only")
    assert len(service.list_notifications(customer.id)) == 3
    assert len(service.list_notifications(vendor.id)) == 1


def test_notify_unknown_user_is_not_found(notification_service):
    with pytest.raises(NotFound):
        notification_service.notify(9999, "info", "t", "m")


def test_mark_read_is_idempotent(customer, notification_service):
    notification_service.notify(customer.id, "info", "old", "1")
    notification_service.notify(customer.id, "info", "new", "2")

    first = notification_service.mark_read(customer.id, 0)
    assert (first.title, first.read) == ("new", True)
    again = notification_service.mark_read(customer.id, 0)
    assert again.read is True
    assert notification_service.unread_count(customer.id) == 1

    with pytest.raises(NotFound):
        notification_service.mark_read(customer.id, 2)
    with pytest.raises(NotFound):
        notification_service.mark_read(customer.id, -1)


def test_notification_text_is_sanitized(customer, notification_service):
    entry = notification_service.notify(customer.id, "info", "<b>Hi</b>", "<img src=x onerror=alert(1)>Hello")
    assert entry.title == "Hi"
    assert entry.message == "Hello"


def test_dispatch_push_skips_missing_or_invalid_tokens(db, make_account, push_recorder):
    service = NotificationService(db, dispatcher=push_recorder)
    no_token = make_account()
    bad_token = make_account(push_token="not-a-token")

    assert asyncio.run(service.dispatch_push(no_token.id, {"title": "t", "body": "b"})) is False
    assert asyncio.run(service.dispatch_push(bad_token.id, {"title": "t", "body": "b"})) is False
    assert push_recorder.sent == []


def test_deliver_survives_missing_user(notification_service, push_recorder):
    assert asyncio.run(notification_service.deliver(9999, "job", "t", "m")) is None
    assert push_recorder.sent == []


def test_background_dispatcher_defers_to_background_tasks():
    tasks = BackgroundTasks()
    dispatcher = BackgroundPushDispatcher(client=ExpoPushClient(push_url="http://push.invalid"))

    queued = asyncio.run(dispatcher.dispatch("ExponentPushToken[abc]", {"title": "t", "body": "b"}, tasks))
    assert queued is True
    assert len(tasks.tasks) == 1


def test_arq_dispatcher_reports_enqueue_failure():
    class BrokenPool:
        async def enqueue_job(self, *args, **kwargs):
            raise ConnectionError("redis down")

    dispatcher = ArqPushDispatcher(redis_settings=object(), enqueue_timeout=0.5)
    dispatcher._pool = BrokenPool()
    assert asyncio.run(dispatcher.dispatch("ExponentPushToken[abc]", {"title": "t"})) is False


def test_build_push_dispatcher_modes():
    assert isinstance(build_push_dispatcher("background"), BackgroundPushDispatcher)
    assert isinstance(build_push_dispatcher("arq"), ArqPushDispatcher)
    assert type(build_push_dispatcher("disabled")) is PushDispatcher
    assert type(build_push_dispatcher("carrier-pigeon")) is PushDispatcher


# ============================================================================
# EXPO PUSH CLIENT
# ============================================================================


def _client(handler):
    return ExpoPushClient(push_url="https://push.test/send", timeout=1.0, transport=httpx.MockTransport(handler))


def test_expo_token_format():
    assert is_expo_push_token("ExponentPushToken[xyz]")
    assert is_expo_push_token("ExpoPushToken[xyz]")
    assert not is_expo_push_token("xyz")
    assert not is_expo_push_token(None)


def test_push_success_sends_expected_message():
    seen = {}

    def handler(request):
        seen.update(json.loads(request.content))
        return httpx.Response(200, json={"data": {"status": "ok", "id": "ticket-1"}})

    sent, error = asyncio.run(_client(handler).send("ExponentPushToken[abc]", "New booking", "Monday 09:00", {"bookingId": 1}))
    assert (sent, error) == (True, None)
    assert seen["to"] == "ExponentPushToken[abc]"
    assert seen["data"] == {"bookingId": 1}


@pytest.mark.parametrize(
    "response,expected_error",
    [
        (httpx.Response(500, text="boom"), "HTTP 500"),
        (httpx.Response(200, json={"data": {"status": "error", "message": "DeviceNotRegistered"}}), "DeviceNotRegistered"),
        (httpx.Response(200, content=b"not json"), "Invalid response"),
    ],
)
def test_push_failures_are_reported_not_raised(response, expected_error):
    sent, error = asyncio.run(_client(lambda request: response).send("ExponentPushToken[abc]", "t", "b"))
    assert sent is False
    assert error == expected_error


def test_push_timeout_is_reported():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    assert asyncio.run(_client(handler).send("ExponentPushToken[abc]", "t", "b")) == (False, "Timeout")


def test_worker_task_uses_context_client():
    def handler(request):
        return httpx.Response(200, json={"data": [{"status": "ok"}]})

    ctx = {"push_client": _client(handler), "job_id": "job-1"}
    result = asyncio.run(send_push_notification_task(ctx, "ExponentPushToken[abc]", {"title": "t", "body": "b"}))
    assert result == {"sent": True, "error": None}


# ============================================================================
# HTTP
# ============================================================================


def test_notification_endpoints(client, customer, notification_service):
    notification_service.notify(customer.id, "booking", "Booking confirmed", "See you Monday")

    listed = client.get("/notifications", headers=auth_headers(customer)).json()
    assert listed["unreadCount"] == 1
    assert listed["notifications"][0]["type"] == "booking"

    marked = client.put("/notifications/0/read", headers=auth_headers(customer))
    assert marked.json()["notification"]["read"] is True
    assert marked.json()["unreadCount"] == 0
    assert client.put("/notifications/0/read", headers=auth_headers(customer)).status_code == 200
    assert client.put("/notifications/5/read", headers=auth_headers(customer)).status_code == 404
