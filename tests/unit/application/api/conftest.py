"""Application fixtures: the real app wired to in-memory adapters."""

import pytest
from app_fakes import FakeUserRepository, make_client


@pytest.fixture
def users() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def client(users):
    with make_client(users=users) as client:
        yield client
