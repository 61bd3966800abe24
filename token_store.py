import asyncio
import logging
from typing import NamedTuple, Optional

import boto3

logger = logging.getLogger(__name__)


class TokenPair(NamedTuple):
	access_token: Optional[str]
	refresh_token: Optional[str]


EMPTY_TOKENS = TokenPair(None, None)


# ===============================================================================
# TOKEN MANAGEMENT (DYNAMODB)
# ===============================================================================
class DynamoTokenStore:
	"""
	Persists the Wyze token pair in DynamoDB, keyed by the device identity.
	PT-BR: Persiste o par de tokens da Wyze no DynamoDB, pela identidade do dispositivo.
	"""

	def __init__(self, table):
		self._table = table

	@classmethod
	def from_table_name(cls, table_name, region_name=None):
		dynamodb = boto3.resource('dynamodb', region_name=region_name)
		return cls(dynamodb.Table(table_name))

	async def load(self, key) -> TokenPair:
		response = await asyncio.to_thread(self._table.get_item, Key={'id': key})
		if not (item := response.get('Item')):
			logger.warning(f"No tokens stored for {key}, the API client will log in.")
			return EMPTY_TOKENS
		return TokenPair(item.get('accessToken'), item.get('refreshToken'))

	async def save(self, key, tokens: TokenPair) -> None:
		await asyncio.to_thread(
			self._table.put_item,
			Item={'id': key, 'accessToken': tokens.access_token, 'refreshToken': tokens.refresh_token},
		)
		logger.info(f"Stored rotated tokens for {key}")
