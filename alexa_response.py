import time
import uuid


def _resolve(value, default):
	"""
	Returns the default when the supplied value is missing or an empty string.
	PT-BR: Retorna o valor padrão quando o valor informado está ausente ou vazio.
	"""
	if value is None or value == "":
		return default
	return value


def _time_of_sample():
	now = time.time()
	return time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(now)) + f".{int(now * 1000) % 1000:03d}Z"


class AlexaResponse:
	"""
	Builds an Alexa Smart Home v3 response envelope.
	PT-BR: Monta o envelope de resposta Smart Home v3 da Alexa.

	Missing options fall back to defaults, so a response is always produced.
	"""

	def __init__(self, namespace=None, name=None, message_id=None, correlation_token=None,
			payload_version=None, token=None, cookie=None, endpoint_id=None, payload=None,
			event=None, context=None):
		self.context = _resolve(context, None)
		self.event = _resolve(event, None)

		if self.event is None:
			header = {
				"namespace": _resolve(namespace, "Alexa"),
				"name": _resolve(name, "Response"),
				"messageId": _resolve(message_id, str(uuid.uuid4())),
				"payloadVersion": _resolve(payload_version, "3"),
			}
			if (correlation_token := _resolve(correlation_token, None)) is not None:
				header["correlationToken"] = correlation_token
			self.event = {
				"header": header,
				"endpoint": {
					"scope": {"type": "BearerToken", "token": _resolve(token, "INVALID")},
					"cookie": _resolve(cookie, {}),
					"endpointId": _resolve(endpoint_id, "INVALID"),
				},
				"payload": _resolve(payload, {}),
			}

		# No endpoint in an AcceptGrant or Discover response
		response_name = self.event.get("header", {}).get("name")
		if response_name in ("AcceptGrant.Response", "Discover.Response"):
			self.event.pop("endpoint", None)
		if response_name == "StateReport" and isinstance(self.event.get("endpoint"), dict):
			self.event["endpoint"].pop("scope", None)

	def add_context_property(self, **opts):
		"""Appends a property to the context; call order is preserved."""
		if self.context is None:
			self.context = {"properties": []}
		self.context.setdefault("properties", []).append(self.create_context_property(**opts))

	def add_payload_endpoint(self, **opts):
		payload = self.event.setdefault("payload", {})
		payload.setdefault("endpoints", []).append(self.create_payload_endpoint(**opts))

	@staticmethod
	def create_context_property(namespace=None, name=None, value=None, uncertainty_in_milliseconds=None):
		return {
			"namespace": _resolve(namespace, "Alexa.EndpointHealth"),
			"name": _resolve(name, "connectivity"),
			"value": _resolve(value, {"value": "OK"}),
			"timeOfSample": _time_of_sample(),
			"uncertaintyInMilliseconds": _resolve(uncertainty_in_milliseconds, 0),
		}

	@staticmethod
	def create_payload_endpoint(capabilities=None, description=None, display_categories=None,
			endpoint_id=None, friendly_name=None, manufacturer_name=None, cookie=None):
		"""
		Creates an endpoint descriptor for a Discover.Response payload.
		PT-BR: Cria a descrição de um endpoint para o payload do Discover.Response.
		"""
		endpoint = {
			"capabilities": _resolve(capabilities, []),
			"description": _resolve(description, "Control Roku TV with Alexa"),
			"displayCategories": _resolve(display_categories, ["TV"]),
			"endpointId": _resolve(endpoint_id, "endpoint-001"),
			"friendlyName": _resolve(friendly_name, "TV"),
			"manufacturerName": _resolve(manufacturer_name, "Roku"),
		}
		if cookie is not None:
			endpoint["cookie"] = cookie
		return endpoint

	@staticmethod
	def create_payload_endpoint_capability(type=None, interface=None, version=None, inputs=None,
			supported=None, proactively_reported=None, retrievable=None,
			supported_operations=None, supported_intents=None):
		"""
		Creates a capability for an endpoint within the payload.
		PT-BR: Cria uma capacidade para um endpoint dentro do payload.

		`supported` emits a properties block; `supported_operations` replaces
		that block with an empty one.
		"""
		capability = {
			"type": _resolve(type, "AlexaInterface"),
			"interface": _resolve(interface, "Alexa"),
			"version": _resolve(version, "3"),
		}
		if inputs:
			capability["inputs"] = inputs
		if supported:
			capability["properties"] = {
				"supported": supported,
				"proactivelyReported": _resolve(proactively_reported, True),
				"retrievable": _resolve(retrievable, True),
			}
		if supported_operations:
			capability["properties"] = {}
			capability["supportedOperations"] = supported_operations
		if supported_intents:
			capability["supportedIntents"] = supported_intents
		if proactively_reported:
			capability["proactivelyReported"] = proactively_reported
		return capability

	def get(self):
		"""Returns the finished response as a JSON-ready dict."""
		response = {"event": self.event}
		if self.context is not None:
			response["context"] = self.context
		return response
