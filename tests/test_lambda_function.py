import pytest

import lambda_function
from fakes import FakeTokenStore, FakeWyzeClient, contact_sensor, directive
from smart_home import SmartHomeDispatcher

ENVIRONMENT = {'WYZE_USERNAME': 'user', 'WYZE_PASSWORD': 'pw', 'WYZE_PHONE_ID': 'phone-1'}


def test_load_config_defaults():
	config = lambda_function.load_config(ENVIRONMENT)
	assert config['phone_id'] == 'phone-1'
	assert config['tokens_table'] == 'WYZE_SETTINGS'
	assert config['api_url'] == 'https://api.wyzecam.com'


def test_load_config_reports_every_missing_setting():
	with pytest.raises(lambda_function.ConfigurationError) as excinfo:
		lambda_function.load_config({'WYZE_USERNAME': 'user'})
	assert 'WYZE_PASSWORD' in str(excinfo.value)
	assert 'WYZE_PHONE_ID' in str(excinfo.value)


def test_missing_configuration_is_fatal(monkeypatch):
	monkeypatch.setattr(lambda_function, '_dispatcher', None)
	for key in ENVIRONMENT:
		monkeypatch.delenv(key, raising=False)
	with pytest.raises(lambda_function.ConfigurationError):
		lambda_function.lambda_handler(directive('Alexa.Discovery', 'Discover'))


def test_lambda_handler_runs_dispatcher(monkeypatch):
	dispatcher = SmartHomeDispatcher(FakeWyzeClient(devices=[contact_sensor('Front Door')]), FakeTokenStore(), 'phone-1')
	monkeypatch.setattr(lambda_function, '_dispatcher', dispatcher)
	response = lambda_function.lambda_handler(directive('Alexa.Discovery', 'Discover'), context=None)
	assert response['event']['header']['name'] == 'Discover.Response'
	assert response['event']['payload']['endpoints'][0]['endpointId'] == 'frontdoor-01'


def test_lambda_handler_rejects_non_directive(monkeypatch):
	monkeypatch.setattr(lambda_function, '_dispatcher', SmartHomeDispatcher(FakeWyzeClient(), FakeTokenStore(), 'phone-1'))
	response = lambda_function.lambda_handler({})
	assert response['event']['payload']['type'] == 'INVALID_DIRECTIVE'


def test_redact_tokens_masks_nested_tokens():
	event = directive('Alexa', 'ReportState', payload={'grantee': {'type': 'BearerToken', 'token': 'grantee-secret-1234'}},
		endpoint={'endpointId': 'frontdoor-01', 'scope': {'type': 'BearerToken', 'token': 'bearer-secret-5678'}})
	redacted = lambda_function.redact_tokens(event)
	assert redacted['directive']['payload']['grantee']['token'] == '...1234'
	assert redacted['directive']['endpoint']['scope']['token'] == '...5678'
	assert event['directive']['endpoint']['scope']['token'] == 'bearer-secret-5678'


def test_lambda_handler_does_not_log_bearer_tokens(monkeypatch, caplog):
	monkeypatch.setattr(lambda_function, '_dispatcher', SmartHomeDispatcher(FakeWyzeClient(), FakeTokenStore(), 'phone-1'))
	event = directive('Alexa.Authorization', 'AcceptGrant', payload={'grant': {'code': 'c'}, 'grantee': {'type': 'BearerToken', 'token': 'grantee-secret-1234'}})
	with caplog.at_level('INFO'):
		lambda_function.lambda_handler(event)
	assert 'grantee-secret-1234' not in caplog.text
	assert '...1234' in caplog.text
