"""
Razorpay integration: order creation and checkout signature verification.

A single gateway instance is shared by the process. It is built on first use
by `get_gateway` and released by `close_gateway` at shutdown.
"""
import hmac
import hashlib
import logging
import uuid
from typing import Dict, Optional

import requests

from config import RAZORPAY_API_URL, RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET
from errors import PaymentGatewayError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10


def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    msg = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), msg, hashlib.sha256).hexdigest()


class RazorpayGateway:
    def __init__(self, key_id: str, key_secret: str, base_url: str = RAZORPAY_API_URL):
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self._session: Optional[requests.Session] = None

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.auth = (self.key_id, self.key_secret)
        return self._session

    def create_order(self, amount: int, currency: str, receipt: str, notes: Dict[str, str]) -> dict:
        """Create an order for `amount` minor units.

        Without credentials a local development order is returned instead.
        """
        if not self.configured:
            order_id = f"order_{uuid.uuid4().hex[:14]}"
            logger.warning("Razorpay keys not set, using development order %s", order_id)
            return {"id": order_id, "amount": amount, "currency": currency, "receipt": receipt, "notes": notes}

        try:
            resp = self.session.post(
                f"{self.base_url}/orders",
                json={
                    "amount": amount,
                    "currency": currency,
                    "receipt": receipt,
                    "notes": notes,
                },
                timeout=REQUEST_TIMEOUT,
            )
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Razorpay order creation failed: %s", e)
            raise PaymentGatewayError(str(e)) from e

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        if not self.configured:
            logger.warning("Razorpay keys not set, refusing to verify payment for order %s", order_id)
            return False
        expected = compute_signature(order_id, payment_id, self.key_secret)
        return hmac.compare_digest(expected.encode(), (signature or "").encode())

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None


_gateway: Optional[RazorpayGateway] = None


def get_gateway() -> RazorpayGateway:
    global _gateway
    if _gateway is None:
        _gateway = RazorpayGateway(RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET)
    return _gateway


def close_gateway() -> None:
    global _gateway
    if _gateway is not None:
        _gateway.close()
        _gateway = None
