import pytest

from scolitrack.core.exceptions import Conflict, NotFound
from scolitrack.modules.notifications.schemas import NotificationCreate, SubscriptionCreate
from scolitrack.modules.notifications.service import NotificationService, build_payload


@pytest.fixture
def service(supabase):
    return NotificationService(supabase)


def subscription(endpoint):
    return SubscriptionCreate(endpoint=endpoint, keys={"p256dh": "key", "auth": "secret"})


class TestPayload:
    def test_defaults(self):
        payload = build_payload(NotificationCreate(
            title="Réunion", message="Conseil de classe à 18h", target={"type": "role", "id": "ADMIN"}
        ))

        assert payload.vibrate == [400, 100, 200]
        assert [a.action for a in payload.actions] == ["open", "close"]
        assert payload.data["url"] == "/"
        assert isinstance(payload.data["dateOfArrival"], int)
        assert payload.model_dump(by_alias=True)["requireInteraction"] is True

    def test_caller_data_is_kept(self):
        payload = build_payload(NotificationCreate(
            title="Note", message="Nouvelle note", target={"type": "user", "id": "u-1"},
            data={"url": "/grades", "grade_id": "g-1"}, vibrate=[100]
        ))

        assert payload.data["url"] == "/grades"
        assert payload.data["grade_id"] == "g-1"
        assert payload.vibrate == [100]


class TestSubscriptions:
    def test_subscribe_twice_refreshes_the_keys(self, service, supabase):
        service.subscribe("u-1", subscription("https://push.example/1"))
        service.subscribe("u-1", SubscriptionCreate(
            endpoint="https://push.example/1", keys={"p256dh": "new-key", "auth": "new-secret"}
        ))

        rows = supabase.tables["push_subscriptions"]
        assert len(rows) == 1
        assert rows[0]["p256dh"] == "new-key"

    def test_endpoint_of_another_user_is_refused(self, service, supabase):
        service.subscribe("u-1", subscription("https://push.example/1"))

        with pytest.raises(Conflict):
            service.subscribe("u-2", subscription("https://push.example/1"))
        assert [row["user_id"] for row in supabase.tables["push_subscriptions"]] == ["u-1"]

    def test_unsubscribe_unknown(self, service):
        with pytest.raises(NotFound):
            service.unsubscribe("u-1", "https://push.example/404")

    def test_prepare_for_role(self, service, make_user):
        teacher = make_user("prof@example.com", role_name="TEACHER")
        other = make_user("parent@example.com")
        service.subscribe(teacher["id"], subscription("https://push.example/teacher"))
        service.subscribe(other["id"], subscription("https://push.example/parent"))

        prepared = service.prepare(NotificationCreate(
            title="Réunion", message="Salle 12", target={"type": "role", "id": "TEACHER"}
        ))

        assert [s.endpoint for s in prepared.subscriptions] == ["https://push.example/teacher"]

    def test_prepare_without_subscription(self, service):
        with pytest.raises(NotFound):
            service.prepare(NotificationCreate(title="x", message="y", target={"type": "user", "id": "u-1"}))

    def test_prepare_route(self, client, super_admin, auth_headers, service):
        service.subscribe(super_admin["id"], subscription("https://push.example/admin"))

        response = client.post(
            "/api/v1/notifications/payloads",
            json={"title": "Test", "message": "Bonjour", "target": {"type": "user", "id": super_admin["id"]}},
            headers=auth_headers(super_admin)
        )

        body = response.json()
        assert response.status_code == 200
        assert body["data"]["payload"]["requireInteraction"] is True
        assert body["data"]["subscriptions"][0]["endpoint"] == "https://push.example/admin"
