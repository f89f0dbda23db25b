import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api import ROUTERS
from ordering.api.errors import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    for router in ROUTERS:
        app.include_router(router, prefix="/api/v1")
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def customer_headers():
    return {
        "X-Customer-Id": "cust-api-001",
        "X-Customer-Email": "Ram@Example.com",
        "X-Customer-First-Name": "Ram",
        "X-Customer-Last-Name": "Thapa",
    }


@pytest.fixture()
def admin_headers():
    return {"X-Customer-Id": "admin-001", "X-Customer-Email": "admin@example.com", "X-Customer-Role": "admin"}
