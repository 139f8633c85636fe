"""
PayPal REST client (v1 payments API).

Only the two calls the checkout needs: create a "sale" payment that the
buyer approves on PayPal, and execute it once the buyer comes back with a
payer id.
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

import httpx

from errors import PaymentGatewayError
from logger import logger
from settings import PAYPAL_MODES, Settings, get_settings

API_BASE = {
    "sandbox": "https://api.sandbox.paypal.com",
    "live": "https://api.paypal.com",
}
CURRENCY = "USD"


@dataclass
class PaymentApproval:
    payment_id: str
    approval_url: str


class PayPalClient:
    def __init__(self, mode: str, client_id: str, client_secret: str,
                 http: Optional[httpx.Client] = None, timeout: float = 15.0):
        if mode not in PAYPAL_MODES:
            raise ValueError('PAYPAL_MODE must be "sandbox" or "live"')
        self.mode = mode
        self.client_id = client_id
        self.client_secret = client_secret
        self.http = http or httpx.Client(base_url=API_BASE[mode], timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PayPalClient":
        return cls(settings.paypal_mode, settings.paypal_client_id, settings.paypal_client_secret)

    def _access_token(self) -> str:
        resp = self.http.post(
            "/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret),
            headers={"Accept": "application/json"},
        )
        resp.raise_for_status()
        return resp.json()["access_token"]

    def _post(self, path: str, body: dict) -> dict:
        try:
            token = self._access_token()
            resp = self.http.post(path, json=body, headers={"Authorization": f"Bearer {token}"})
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            logger.error("PAYPAL_REQUEST_REJECTED", {
                "path": path,
                "status": e.response.status_code,
                "body": e.response.text[:500],
            })
            raise PaymentGatewayError() from e
        except httpx.HTTPError as e:
            logger.error("PAYPAL_REQUEST_FAILED", {"path": path, "error": str(e)})
            raise PaymentGatewayError() from e
        except (KeyError, ValueError) as e:
            logger.error("PAYPAL_RESPONSE_MALFORMED", {"path": path, "error": repr(e)})
            raise PaymentGatewayError() from e

    def create_payment(self, items: List[dict], total: float, return_url: str, cancel_url: str) -> PaymentApproval:
        """
        Create a payment awaiting buyer approval.

        items are order line items ({productId, title, price, quantity}).
        """
        body = {
            "intent": "sale",
            "payer": {"payment_method": "paypal"},
            "redirect_urls": {"return_url": return_url, "cancel_url": cancel_url},
            "transactions": [
                {
                    "item_list": {
                        "items": [
                            {
                                "name": item["title"],
                                "sku": item["productId"],
                                "price": f"{item['price']:.2f}",
                                "currency": CURRENCY,
                                "quantity": item["quantity"],
                            }
                            for item in items
                        ]
                    },
                    "amount": {"currency": CURRENCY, "total": f"{total:.2f}"},
                    "description": "Order payment",
                }
            ],
        }
        payment = self._post("/v1/payments/payment", body)
        approval_url = next(
            (link["href"] for link in payment.get("links", []) if link.get("rel") == "approval_url"),
            None,
        )
        if not approval_url or not payment.get("id"):
            logger.error("PAYPAL_APPROVAL_URL_MISSING", {"paymentId": payment.get("id")})
            raise PaymentGatewayError()
        return PaymentApproval(payment_id=payment["id"], approval_url=approval_url)

    def execute_payment(self, payment_id: str, payer_id: str) -> dict:
        payment = self._post(f"/v1/payments/payment/{payment_id}/execute", {"payer_id": payer_id})
        if payment.get("state") != "approved":
            logger.error("PAYPAL_PAYMENT_NOT_APPROVED", {"paymentId": payment_id, "state": payment.get("state")})
            raise PaymentGatewayError("Payment was not approved")
        return payment

    def close(self):
        self.http.close()


@lru_cache()
def get_payment_gateway() -> PayPalClient:
    return PayPalClient.from_settings(get_settings())
