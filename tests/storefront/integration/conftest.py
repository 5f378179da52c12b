import pytest
from fastapi.testclient import TestClient

from app import create_app


@pytest.fixture()
def client(storefront):
    with TestClient(create_app(storefront)) as client:
        yield client
