"""
Shared fixtures: a stub Elpis server and clients wired to it.
"""

import pytest
from fastapi.testclient import TestClient

from elpis_client.client import Elpis

from .stub_server import create_app


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def http_client(app):
    """httpx client that dispatches to the stub app in-process."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def elpis(http_client):
    client = Elpis("http://testserver", http_client=http_client)
    yield client
    client.close()
