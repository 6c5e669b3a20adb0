"""Pytest configuration - loads .env for integration tests and provides a fake transport."""

from pathlib import Path

import pytest
from dotenv import load_dotenv
from fakes import FakeTransport

from arrowsphere_cli.sdk import ArrowSphereClient

# Load .env from project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

API_KEY = "123456"
BASE_URL = "https://www.test.com"


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(transport: FakeTransport) -> ArrowSphereClient:
    return ArrowSphereClient(api_key=API_KEY, base_url=BASE_URL, transport=transport)
