import logging

from storefront.config import settings
from storefront.errors import DependencyError

logger = logging.getLogger(__name__)


class RefundGateway:
    """Anything that can refund a captured payment by its reference."""

    def create_refund(self, payment_reference: str) -> str:
        raise NotImplementedError


class RazorpayRefundGateway(RefundGateway):
    def __init__(self, key_id: str, key_secret: str):
        import razorpay

        self.client = razorpay.Client(auth=(key_id, key_secret))

    def create_refund(self, payment_reference: str) -> str:
        logger.info(f"Requesting full refund for payment {payment_reference}")

        try:
            refund = self.client.payment.refund(payment_reference, {})
        except Exception as e:
            logger.error(f"Refund request failed for payment {payment_reference}: {e}")
            raise DependencyError("Refund could not be processed") from e

        refund_id = refund.get("id")
        if not refund_id:
            raise DependencyError("Payment gateway returned no refund id")

        return refund_id


def get_refund_gateway() -> RefundGateway:
    return RazorpayRefundGateway(settings.razorpay_key_id, settings.razorpay_key_secret)
