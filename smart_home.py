import logging
import re

from alexa_response import AlexaResponse

logger = logging.getLogger(__name__)

CONTACT_SENSOR_PRODUCT_TYPE = 'ContactSensor'
ENDPOINT_ID_SUFFIX = '-01'


class DeviceNotFoundError(LookupError):
	pass


def endpoint_id_for(nickname):
	"""'Front Door' -> 'frontdoor-01'. Duplicate nicknames map to the same id."""
	slug = re.sub(r'\s', '', nickname).lower()
	return f"{slug}{ENDPOINT_ID_SUFFIX}"


def mask_token(token):
	return f"...{(token or '')[-4:]}"


def detection_state(open_close_state):
	return 'NOT_DETECTED' if open_close_state == 0 else 'DETECTED'


def create_error_response(error_type, message):
	"""
	Creates a standard Alexa ErrorResponse.
	PT-BR: Cria uma resposta de erro padrão da Alexa.
	"""
	logger.error(f"Creating ErrorResponse: Type={error_type}, Message={message}")
	return AlexaResponse(name='ErrorResponse', payload={'type': error_type, 'message': message}).get()


# ===============================================================================
# ALEXA DIRECTIVE DISPATCHER (Alexa -> Wyze)
# ===============================================================================
class SmartHomeDispatcher:
	"""
	Routes Alexa Smart Home directives to the Wyze API and builds the replies.
	PT-BR: Roteia diretivas Smart Home da Alexa para a API da Wyze e monta as respostas.
	"""

	def __init__(self, client, token_store, identity_key):
		self.client = client
		self.token_store = token_store
		self.identity_key = identity_key

	async def handle(self, event):
		if 'directive' not in event:
			return create_error_response("INVALID_DIRECTIVE", "Missing key: directive, Is request a valid Alexa directive?")

		directive = event['directive'] or {}
		header = directive.get('header', {})
		if header.get('payloadVersion') != "3":
			return create_error_response("INTERNAL_ERROR", "This skill only supports Smart Home API version 3")

		namespace = header.get('namespace') or ''
		name = header.get('name')

		if namespace.lower() == 'alexa.authorization':
			return self.handle_accept_grant(directive)
		if namespace.lower() == 'alexa.discovery':
			return await self.handle_discovery(directive)
		if namespace.lower() == 'alexa' and name == 'ReportState':
			return await self.handle_report_state(directive)

		return create_error_response("INVALID_DIRECTIVE", f"The directive {namespace}.{name} is not supported.")

	def handle_accept_grant(self, directive):
		# The grantee token is accepted but not exchanged or stored.
		token = directive['payload']['grantee']['token']
		logger.info(f"AcceptGrant received for grantee token ending in {mask_token(token)}")
		return AlexaResponse(namespace='Alexa.Authorization', name='AcceptGrant.Response').get()

	async def handle_discovery(self, directive):
		"""
		Handles the Discover directive, exposing every Wyze contact sensor.
		PT-BR: Lida com a diretiva Discover, expondo cada sensor de contato da Wyze.
		"""
		adr = AlexaResponse(namespace='Alexa.Discovery', name='Discover.Response')
		capability_alexa = adr.create_payload_endpoint_capability()
		capability_endpoint_health = adr.create_payload_endpoint_capability(
			interface='Alexa.EndpointHealth', supported=[{'name': 'connectivity'}])
		capability_contact_sensor = adr.create_payload_endpoint_capability(
			interface='Alexa.ContactSensor', supported=[{'name': 'detectionState'}])

		for device in await self.get_contact_sensors():
			nickname = device['nickname']
			adr.add_payload_endpoint(
				friendly_name=nickname,
				endpoint_id=endpoint_id_for(nickname),
				description=f"Check the {nickname.lower()} status",
				manufacturer_name='Wyze',
				display_categories=['CONTACT_SENSOR'],
				capabilities=[capability_alexa, capability_contact_sensor, capability_endpoint_health],
			)

		response = adr.get()
		logger.info(f"Discovery found {len(response['event']['payload'].get('endpoints', []))} devices.")
		return response

	async def handle_report_state(self, directive):
		endpoint = directive['endpoint']
		endpoint_id = endpoint['endpointId']
		ar = AlexaResponse(
			name='StateReport',
			correlation_token=directive['header'].get('correlationToken'),
			token=endpoint['scope']['token'],
			endpoint_id=endpoint_id,
		)

		device = await self.get_device_status(endpoint_id)
		state = detection_state(device['device_params']['open_close_state'])

		# Primary sensor state first.
		ar.add_context_property(namespace='Alexa.ContactSensor', name='detectionState', value=state)
		ar.add_context_property(namespace='Alexa.EndpointHealth', name='connectivity', value={'value': 'OK'})
		return ar.get()

	# ===============================================================================
	# WYZE DEVICE LOOKUPS
	# ===============================================================================
	async def list_devices(self):
		"""
		Lists Wyze devices, persisting the token pair if the API rotated it.
		PT-BR: Lista os dispositivos Wyze, salvando os tokens se a API os renovou.
		"""
		tokens = await self.token_store.load(self.identity_key)
		self.client.authenticate(tokens)
		result = await self.client.list_devices()
		if result.tokens != tokens:
			await self.token_store.save(self.identity_key, result.tokens)
		return result.data.get('device_list', []) if result.data else []

	async def get_contact_sensors(self):
		return [device for device in await self.list_devices() if device.get('product_type') == CONTACT_SENSOR_PRODUCT_TYPE]

	async def get_device_status(self, endpoint_id):
		# Duplicate nicknames collide; the last matching device wins.
		match = None
		for device in await self.list_devices():
			if endpoint_id_for(device.get('nickname', '')) == endpoint_id:
				match = device
		if match is not None:
			return match
		raise DeviceNotFoundError(f"No Wyze device matches endpoint {endpoint_id}")
