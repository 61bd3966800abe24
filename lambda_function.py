import asyncio
import json
import logging
import os

from smart_home import SmartHomeDispatcher, mask_token
from token_store import DynamoTokenStore
from wyze_client import DEFAULT_BASE_URL, WyzeClient

# ===============================================================================
# CONFIGURATION AND LOGGING
# ===============================================================================
# PT-BR: Configuração do logger para integrar com CloudWatch.
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

REQUIRED_SETTINGS = ('WYZE_USERNAME', 'WYZE_PASSWORD', 'WYZE_PHONE_ID')


class ConfigurationError(RuntimeError):
	pass


def load_config(environ=None):
	"""
	Reads the skill configuration from the environment variables.
	PT-BR: Lê a configuração da skill a partir das variáveis de ambiente.
	"""
	environ = os.environ if environ is None else environ
	if missing := [key for key in REQUIRED_SETTINGS if not environ.get(key)]:
		raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")
	return {
		'username': environ['WYZE_USERNAME'],
		'password': environ['WYZE_PASSWORD'],
		'phone_id': environ['WYZE_PHONE_ID'],
		'api_url': environ.get('WYZE_API_URL', DEFAULT_BASE_URL),
		'tokens_table': environ.get('TOKENS_TABLE', 'WYZE_SETTINGS'),
	}


def build_dispatcher(config):
	client = WyzeClient(config['username'], config['password'], config['phone_id'], base_url=config['api_url'])
	token_store = DynamoTokenStore.from_table_name(config['tokens_table'])
	# The phone id doubles as the key of the stored token pair.
	return SmartHomeDispatcher(client, token_store, identity_key=config['phone_id'])


_dispatcher = None


def get_dispatcher():
	global _dispatcher
	if _dispatcher is None:
		_dispatcher = build_dispatcher(load_config())
	return _dispatcher


def redact_tokens(message):
	"""Returns a copy of a directive or response with every bearer token masked."""
	if isinstance(message, dict):
		return {key: mask_token(value) if key == 'token' and isinstance(value, str) else redact_tokens(value) for key, value in message.items()}
	if isinstance(message, list):
		return [redact_tokens(item) for item in message]
	return message


# ===============================================================================
# MAIN LAMBDA HANDLER
# ===============================================================================
def lambda_handler(event, context=None):
	"""
	Main entry point for Alexa Smart Home directives.
	PT-BR: Ponto de entrada principal para as diretivas Smart Home da Alexa.
	"""
	logger.info(f"lambda_handler request: {json.dumps(redact_tokens(event), default=str)}")
	if context is not None:
		logger.debug(f"lambda_handler context: {getattr(context, 'aws_request_id', context)}")

	response = asyncio.run(get_dispatcher().handle(event))

	logger.info(f"lambda_handler response: {json.dumps(redact_tokens(response), default=str)}")
	return response
