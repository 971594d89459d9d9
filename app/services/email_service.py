import logging
import smtplib
from email.message import EmailMessage

from sqlalchemy.orm import Session

from app.config import settings
from app.events import EventBus, OrderStatusChanged
from app.models import Order
from app.models.order import OrderStatus

logger = logging.getLogger(__name__)


def is_smtp_configured() -> bool:
    return bool(settings.SMTP_HOST and settings.SMTP_FROM_EMAIL)


def _send_email(to_email: str, subject: str, text_body: str, html_body: str | None = None) -> None:
    if not is_smtp_configured():
        raise RuntimeError("SMTP is not configured (SMTP_HOST and SMTP_FROM_EMAIL are required).")

    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    message["To"] = to_email
    message.set_content(text_body)
    if html_body:
        message.add_alternative(html_body, subtype="html")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS) as smtp:
        smtp.ehlo()
        if settings.SMTP_USE_TLS:
            smtp.starttls()
            smtp.ehlo()
        if settings.SMTP_USER:
            smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        smtp.send_message(message)


def send_order_processing_email(
    to_email: str,
    first_name: str | None,
    order_id: int,
    total: str,
    currency: str,
    payment_method_title: str | None,
) -> None:
    name = first_name or "there"
    payment = payment_method_title or "offline payment"
    text = (
        f"Hi {name},\n\n"
        f"Congratulations on winning your auction. Order #{order_id} has been created for you.\n"
        f"Total: {total} {currency}\n"
        f"Payment: {payment}\n\n"
        "We will be in touch about delivery."
    )
    html = (
        f"<p>Hi {name},</p>"
        f"<p>Congratulations on winning your auction. Order #{order_id} has been created for you.</p>"
        f"<p>Total: <strong>{total} {currency}</strong><br>Payment: {payment}</p>"
        "<p>We will be in touch about delivery.</p>"
    )
    _send_email(to_email=to_email, subject=f"Your order #{order_id}", text_body=text, html_body=html)


def notify_customer_on_processing(event: OrderStatusChanged, *, db: Session, **_) -> None:
    if event.new_status != OrderStatus.PROCESSING.value:
        return

    order = db.get(Order, event.order_id)
    billing = order.billing if order else None
    if billing is None or not billing.email:
        logger.info("Order %s has no billing email, skipping processing notification", event.order_id)
        return
    if not is_smtp_configured():
        logger.info("SMTP not configured, skipping processing notification for order %s", event.order_id)
        return

    try:
        send_order_processing_email(
            billing.email,
            billing.first_name,
            order.id,
            format(order.total, "f"),
            order.currency,
            order.payment_method_title,
        )
    except Exception:
        logger.exception("Failed to send processing notification for order id=%s", order.id)


def register_handlers(bus: EventBus) -> None:
    bus.subscribe(OrderStatusChanged, notify_customer_on_processing)
