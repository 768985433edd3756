# app/services/notification_service.py
from jinja2 import Environment, select_autoescape

from app.celery_worker import celery_app
from app.data.database import SessionLocal
from app.repos.user_repo import UserRepo
from app.services.email_client import EmailClient
from app.utils.formatters import money
from app.utils.logging import get_logger

logger = get_logger(__name__)

_env = Environment(autoescape=select_autoescape(default_for_string=True))
_env.filters["money"] = money

ORDER_EMAIL_TEMPLATE = _env.from_string(
    """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #333; border-bottom: 2px solid #4CAF50; padding-bottom: 10px;">Đơn Hàng Mới</h1>
  <p><strong>Mã đơn hàng:</strong> #{{ short_id }}</p>
  <p><strong>Khách hàng:</strong> {{ customer_name }}</p>
  <h2 style="color: #333; margin-top: 30px;">Chi tiết đơn hàng</h2>
  <table style="width: 100%; border-collapse: collapse; margin: 20px 0;">
    <thead>
      <tr style="background-color: #f5f5f5;">
        <th style="padding: 8px; text-align: left;">Sản phẩm</th>
        <th style="padding: 8px; text-align: center;">SL</th>
        <th style="padding: 8px; text-align: right;">Đơn giá</th>
        <th style="padding: 8px; text-align: right;">Thành tiền</th>
      </tr>
    </thead>
    <tbody>
    {% for item in items %}
      <tr>
        <td style="padding: 8px;">{{ item.name }}</td>
        <td style="padding: 8px; text-align: center;">{{ item.quantity }}</td>
        <td style="padding: 8px; text-align: right;">{{ item.price | money }}</td>
        <td style="padding: 8px; text-align: right;">{{ (item.quantity * item.price) | money }}</td>
      </tr>
    {% endfor %}
    </tbody>
  </table>
  <p style="font-size: 18px; text-align: right;"><strong>Tổng cộng: {{ total | money }}</strong></p>
  <p>Vui lòng xử lý đơn hàng này trong trang quản lý.</p>
</div>
"""
)


def render_order_email(payload: dict) -> tuple[str, str]:
    short_id = str(payload["order_id"])[:8]
    subject = f"Đơn hàng mới #{short_id}"
    html = ORDER_EMAIL_TEMPLATE.render(short_id=short_id, **payload)
    return subject, html


def deliver_order_notification(payload: dict, db=None, email_client: EmailClient | None = None) -> dict:
    """
    Wysyla e-mail o nowym zamowieniu do wszystkich adminow.
    payload: {order_id, customer_name, total, items: [{name, quantity, price}]}
    """
    own_session = db is None
    db = db or SessionLocal()
    try:
        emails = UserRepo(db).get_admin_emails()
    finally:
        if own_session:
            db.close()

    if not emails:
        logger.info(f"[NOTIFICATION] Order {payload['order_id']}: no admin emails to notify")
        return {"order_id": payload["order_id"], "status": "skipped"}

    subject, html = render_order_email(payload)
    (email_client or EmailClient()).send(emails, subject, html)

    logger.info(f"[NOTIFICATION] Order {payload['order_id']}: sent to {len(emails)} admin(s)")
    return {"order_id": payload["order_id"], "status": "sent"}


class NotificationService:
    """
    Serwis do wysyłania powiadomień.
    Używa Celery do asynchronicznego przetwarzania.
    """

    @staticmethod
    def send_order_notification(payload: dict):
        """
        Kolejkuje powiadomienie o nowym zamówieniu.
        Kwoty jako float, bo payload idzie przez JSON brokera.
        """
        send_order_notification_task.delay(payload)


@celery_app.task(name="app.services.notification_service.send_order_notification_task")
def send_order_notification_task(payload: dict):
    return deliver_order_notification(payload)
