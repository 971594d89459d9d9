from dataclasses import dataclass

from app.config import settings

COD_GATEWAY_ID = "cod"


@dataclass(frozen=True)
class PaymentGateway:
    id: str
    title: str
    enabled: bool


def get_payment_gateways() -> dict[str, PaymentGateway]:
    """Registered gateways keyed by id. Disabled gateways are not registered."""
    gateways = {
        COD_GATEWAY_ID: PaymentGateway(
            id=COD_GATEWAY_ID,
            title=settings.COD_TITLE,
            enabled=settings.COD_ENABLED,
        ),
    }
    return {gateway_id: gateway for gateway_id, gateway in gateways.items() if gateway.enabled}


def get_enabled_payment_methods() -> list[str]:
    return list(get_payment_gateways())
