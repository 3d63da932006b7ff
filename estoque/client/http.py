"""
Estoque - HTTP client
Chamadas à API com o bearer token da sessão Supabase
"""
import json
import logging
from typing import Any, Dict, Literal, Optional, Tuple, Union

import httpx

from estoque.core.config import settings
from estoque.client.identity import IdentityClient

logger = logging.getLogger(__name__)

UnauthorizedBehavior = Literal["throw", "return_null"]


class ApiError(Exception):
    """Resposta não-2xx da API"""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"{status_code}: {body}")


def raise_for_status(response: httpx.Response):
    if not response.is_success:
        raise ApiError(response.status_code, response.text or response.reason_phrase)


def key_url(key: Union[str, Tuple[str, ...]]) -> str:
    """A URL é o primeiro segmento da chave de cache"""
    return key if isinstance(key, str) else key[0]


class ApiClient:
    def __init__(
        self,
        identity: IdentityClient,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._identity = identity
        self._client = httpx.AsyncClient(
            base_url=settings.API_BASE_URL if base_url is None else base_url,
            transport=transport
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def close(self):
        await self._client.aclose()

    async def auth_headers(self) -> Dict[str, str]:
        """Authorization com o access token atual (vazio sem sessão)"""
        session = await self._identity.get_session()
        if session and session.access_token:
            return {"Authorization": f"Bearer {session.access_token}"}
        return {}

    async def request(self, method: str, url: str, data: Any = None) -> httpx.Response:
        headers = await self.auth_headers()
        content = None
        if data is not None:
            headers["Content-Type"] = "application/json"
            content = json.dumps(data, separators=(",", ":"))

        response = await self._client.request(method, url, headers=headers, content=content)
        if not response.is_success:
            logger.debug(f"{method} {url} -> {response.status_code}")
        raise_for_status(response)
        return response

    def query_fn(self, on_401: UnauthorizedBehavior = "throw"):
        """
        Função de busca para o QueryClient: GET na chave e JSON de volta.
        Com on_401="return_null" um 401 vira None em vez de ApiError.
        """
        if on_401 not in ("throw", "return_null"):
            raise ValueError(f"Invalid on_401 behavior: {on_401}")

        async def fetch(key: Union[str, Tuple[str, ...]]):
            response = await self._client.get(key_url(key), headers=await self.auth_headers())
            if on_401 == "return_null" and response.status_code == 401:
                return None
            raise_for_status(response)
            return response.json()

        return fetch
