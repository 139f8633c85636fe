"""Pytest configuration for the shop API tests."""

import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("PAYPAL_MODE", "sandbox")
os.environ.setdefault("CLIENT_BASE_URL", "http://shop.test")

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from database import create_document, ensure_indexes, get_db
from errors import PaymentGatewayError
from main import app
from paypal import PaymentApproval, get_payment_gateway
from security import create_token


class FakeGateway:
    """Stands in for PayPalClient; records calls and fails on demand."""

    def __init__(self):
        self.created = []
        self.executed = []
        self.fail_create = False
        self.fail_execute = False

    def create_payment(self, items, total, return_url, cancel_url):
        if self.fail_create:
            raise PaymentGatewayError("Error while creating PayPal payment")
        payment_id = f"PAY-{len(self.created) + 1}"
        self.created.append({"items": items, "total": total, "return_url": return_url, "cancel_url": cancel_url})
        return PaymentApproval(payment_id=payment_id, approval_url=f"https://paypal.test/approve?token={payment_id}")

    def execute_payment(self, payment_id, payer_id):
        if self.fail_execute:
            raise PaymentGatewayError("Payment was not approved")
        self.executed.append((payment_id, payer_id))
        return {"id": payment_id, "state": "approved"}


@pytest.fixture()
def db():
    database = mongomock.MongoClient()["shop_test"]
    ensure_indexes(database)
    return database


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def client(db, gateway):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


def _auth_headers(role):
    user = {"_id": ObjectId(), "role": role, "email": f"{role}@example.com", "userName": role}
    return {"Authorization": f"Bearer {create_token(user)}"}


@pytest.fixture()
def user_headers():
    return _auth_headers("user")


@pytest.fixture()
def admin_headers():
    return _auth_headers("admin")


@pytest.fixture()
def make_product(db):
    def _make(title="Denim Jacket", price=50.0, total_stock=10, **fields):
        doc = {
            "image": f"https://img.test/{title}.png",
            "title": title,
            "description": f"{title} description",
            "category": "men",
            "brand": "levi",
            "price": price,
            "salePrice": 0,
            "totalStock": total_stock,
            "averageReview": 0,
            "reviewCount": 0,
            "reviewTotal": 0,
        }
        doc.update(fields)
        return create_document(db, "product", doc)
    return _make
