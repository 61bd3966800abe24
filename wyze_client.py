import asyncio
import hashlib
import json
import logging
import time
import urllib.request
from typing import NamedTuple

from token_store import EMPTY_TOKENS, TokenPair

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'https://api.wyzecam.com'
APP_NAME = 'com.hualai.WyzeCam'
APP_VERSION = '2.3.69'
SC = '9f275790cab94a72bd206c8876429f3c'
SV = '9d74946e652647e9b6c9d59326aef104'
ACCESS_TOKEN_ERROR_CODES = ('2001',)
SUCCESS_CODE = '1'


class WyzeApiError(Exception):
	def __init__(self, message, code=None):
		super().__init__(message)
		self.code = code


class ObjectList(NamedTuple):
	data: dict
	tokens: TokenPair


class WyzeClient:
	"""
	Minimal client for the Wyze cloud API.
	PT-BR: Cliente mínimo para a API de nuvem da Wyze.

	A call may rotate the token pair (login or refresh); callers read the
	pair back from the result and persist it when it changed.
	"""

	def __init__(self, username, password, phone_id, base_url=DEFAULT_BASE_URL, timeout=10):
		self.username = username
		self._password = password
		self.phone_id = phone_id
		self.base_url = base_url.rstrip('/')
		self.timeout = timeout
		self._tokens = EMPTY_TOKENS

	@property
	def tokens(self) -> TokenPair:
		return self._tokens

	def authenticate(self, tokens: TokenPair):
		self._tokens = tokens or EMPTY_TOKENS

	async def list_devices(self) -> ObjectList:
		"""
		Fetches the object list (devices, groups) for the account.
		PT-BR: Busca a lista de objetos (dispositivos, grupos) da conta.
		"""
		if not self._tokens.access_token:
			await self.login()
		result = await self._post('/app/v2/home_page/get_object_list')
		if self._access_token_expired(result):
			logger.info("Wyze access token expired, refreshing...")
			await self.refresh()
			result = await self._post('/app/v2/home_page/get_object_list')
		self._raise_for_code(result, 'get_object_list')
		return ObjectList(result.get('data') or {}, self._tokens)

	async def login(self):
		password = hashlib.md5(hashlib.md5(self._password.encode('utf-8')).hexdigest().encode('utf-8')).hexdigest()
		result = await self._post('/app/user/login', {'email': self.username, 'password': password}, authenticated=False)
		self._raise_for_code(result, 'login')
		self._store_tokens(result['data'])
		logger.info(f"Logged in to Wyze as {self.username}")

	async def refresh(self):
		if not self._tokens.refresh_token:
			return await self.login()
		result = await self._post('/app/user/refresh_token', {'refresh_token': self._tokens.refresh_token})
		self._raise_for_code(result, 'refresh_token')
		self._store_tokens(result['data'])

	def _store_tokens(self, data):
		self._tokens = TokenPair(data['access_token'], data.get('refresh_token', self._tokens.refresh_token))

	def _request_body(self, data, authenticated):
		body = {
			'app_name': APP_NAME,
			'app_ver': f'{APP_NAME}___{APP_VERSION}',
			'app_version': APP_VERSION,
			'phone_id': self.phone_id,
			'phone_system_type': '1',
			'sc': SC,
			'sv': SV,
			'ts': int(time.time() * 1000),
		}
		if authenticated:
			body['access_token'] = self._tokens.access_token
		return {**body, **(data or {})}

	async def _post(self, path, data=None, authenticated=True):
		return await asyncio.to_thread(self._call_wyze_api, path, self._request_body(data, authenticated))

	def _call_wyze_api(self, path, body):
		"""
		Centralized function to make API calls to Wyze.
		PT-BR: Função centralizada para fazer chamadas à API da Wyze.
		"""
		url = f'{self.base_url}{path}'
		req = urllib.request.Request(url, data=json.dumps(body).encode('utf-8'), method='POST', headers={'Content-Type': 'application/json'})
		try:
			with urllib.request.urlopen(req, timeout=self.timeout) as resp:
				return json.loads(resp.read().decode('utf-8'))
		except Exception as exc:
			logger.exception(f"Exception calling Wyze API endpoint '{path}'")
			raise WyzeApiError(f"Wyze API call to {path} failed: {exc}") from exc

	@staticmethod
	def _access_token_expired(result):
		return str(result.get('code')) in ACCESS_TOKEN_ERROR_CODES or result.get('msg') == 'AccessTokenError'

	@staticmethod
	def _raise_for_code(result, operation):
		if (code := str(result.get('code'))) != SUCCESS_CODE:
			logger.error(f"Wyze {operation} returned code {code}: {result.get('msg')}")
			raise WyzeApiError(f"Wyze {operation} failed: {result.get('msg')}", code=code)
