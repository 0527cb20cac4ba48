import pytest
from fastapi.testclient import TestClient

import main
from gateway import MemoryGateway
from schemas import Cart


@pytest.fixture
def store():
    return MemoryGateway()


@pytest.fixture
def empty_cart():
    return Cart(session_id="test")


@pytest.fixture
def client(store):
    main.CARTS.clear()
    main.app.dependency_overrides[main.get_store] = lambda: store
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()
    main.CARTS.clear()


@pytest.fixture
def admin_client(client):
    response = client.post("/api/login", json={"role": "admin"})
    assert response.status_code == 200
    return client
