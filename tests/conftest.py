import pytest

from fakes import FakeTokenStore, FakeWyzeClient, contact_sensor


@pytest.fixture
def token_store():
	return FakeTokenStore()


@pytest.fixture
def wyze_client():
	return FakeWyzeClient(devices=[contact_sensor('Front Door'), contact_sensor('Deck Door', 1)])
