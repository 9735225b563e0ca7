import pytest

from fakes import SCHEMA, FakeClient

from mysql_crud.crud import Crud


@pytest.fixture
def client() -> FakeClient:
    return FakeClient(SCHEMA)


@pytest.fixture
def crud(client: FakeClient) -> Crud:
    return Crud(client)
