import pytest

from app.data.models import ProfileModel, UserRoleModel
from app.services import email_client
from app.services.email_client import EmailClient
from app.services.notification_service import deliver_order_notification, render_order_email

PAYLOAD = {
    "order_id": 1234567890,
    "customer_name": "Nguyễn <b>Văn</b> A",
    "total": 250000.0,
    "items": [
        {"name": "A", "quantity": 2, "price": 100000.0},
        {"name": "B", "quantity": 1, "price": 50000.0},
    ],
}


class FakeEmailClient:
    def __init__(self):
        self.sent = []

    def send(self, to, subject, html):
        self.sent.append({"to": to, "subject": subject, "html": html})
        return {"id": "email-1"}


def test_render_order_email():
    subject, html = render_order_email(PAYLOAD)

    assert subject == "Đơn hàng mới #12345678"
    assert "250.000đ" in html
    assert "200.000đ" in html
    assert "&lt;b&gt;Văn&lt;/b&gt;" in html


def test_delivers_to_admin_emails(db):
    db.add_all(
        [
            ProfileModel(id="admin-1", email="a@shop.vn"),
            ProfileModel(id="admin-2", email=None),
            ProfileModel(id="user-1", email="u@shop.vn"),
            UserRoleModel(user_id="admin-1", role="admin"),
            UserRoleModel(user_id="admin-2", role="admin"),
            UserRoleModel(user_id="user-1", role="user"),
        ]
    )
    db.commit()
    fake = FakeEmailClient()

    result = deliver_order_notification(PAYLOAD, db=db, email_client=fake)

    assert result == {"order_id": PAYLOAD["order_id"], "status": "sent"}
    assert fake.sent[0]["to"] == ["a@shop.vn"]


def test_skips_when_no_admins(db):
    fake = FakeEmailClient()

    result = deliver_order_notification(PAYLOAD, db=db, email_client=fake)

    assert result["status"] == "skipped"
    assert fake.sent == []


class TestEmailClient:
    def test_posts_resend_payload(self, monkeypatch):
        captured = {}

        class Resp:
            def raise_for_status(self):
                pass

            def json(self):
                return {"id": "email-1"}

        def fake_post(url, json, headers, timeout):
            captured.update(url=url, json=json, headers=headers, timeout=timeout)
            return Resp()

        monkeypatch.setattr(email_client.requests, "post", fake_post)

        client = EmailClient(api_url="http://mail.test/emails", api_key="k", sender="shop@test", timeout=3)
        assert client.send(["a@shop.vn"], "subj", "<p>hi</p>") == {"id": "email-1"}

        assert captured["json"] == {"from": "shop@test", "to": ["a@shop.vn"], "subject": "subj", "html": "<p>hi</p>"}
        assert captured["headers"]["Authorization"] == "Bearer k"
        assert captured["timeout"] == 3

    def test_missing_key(self):
        with pytest.raises(RuntimeError):
            EmailClient(api_key="").send(["a@shop.vn"], "s", "h")
