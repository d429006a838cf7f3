"""
HTTP client for the storefront API.

Every call returns a ServiceResponse mirroring the server envelope
``{success, data, message, errors}``. Transport failures raise NetworkError.
A request rejected with 401 is retried once after asking the registered
refresher for a new access token.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import requests

from .config import ClientConfig
from .exceptions import NetworkError
from .storage import TOKEN_KEY, MemoryTokenStore, TokenStore

logger = logging.getLogger(__name__)

SESSION_HEADER = 'X-Session-Id'


@dataclass
class ServiceResponse:
    success: bool
    data: Any = None
    message: Optional[str] = None
    errors: Dict[str, str] = field(default_factory=dict)
    status_code: Optional[int] = None

    def __bool__(self):
        return self.success


class ApiClient:
    def __init__(self, config: Optional[ClientConfig] = None, store: Optional[TokenStore] = None,
                 http: Optional[requests.Session] = None):
        self.config = config or ClientConfig()
        self.store = store or MemoryTokenStore()
        self.http = http or requests.Session()
        self.http.headers.update({'Content-Type': 'application/json', 'Accept': 'application/json'})
        self.session_id: Optional[str] = None
        self._refresher: Optional[Callable[[], bool]] = None

    def set_refresher(self, refresher: Optional[Callable[[], bool]]) -> None:
        """Callable returning True when it stored a fresh access token"""
        self._refresher = refresher

    def close(self):
        self.http.close()

    def _headers(self, authenticate: bool) -> Dict[str, str]:
        headers = {}
        if authenticate:
            token = self.store.get(TOKEN_KEY)
            if token:
                headers['Authorization'] = f'Bearer {token}'
        if self.session_id:
            headers[SESSION_HEADER] = self.session_id
        return headers

    def _send(self, method, path, json, params, authenticate):
        url = self.config.url(path)
        try:
            return self.http.request(
                method,
                url,
                json=json,
                params=params,
                headers=self._headers(authenticate),
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise NetworkError(f"Could not reach the server: {e}") from e

    @staticmethod
    def _to_response(response) -> ServiceResponse:
        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            ok = 200 <= response.status_code < 300
            message = None if ok else (response.text[:200] or f'Request failed with status {response.status_code}')
            return ServiceResponse(success=ok, data=body, message=message, status_code=response.status_code)

        success = body.get('success', 200 <= response.status_code < 300)
        return ServiceResponse(
            success=bool(success) and response.status_code < 400,
            data=body.get('data'),
            message=body.get('message') or body.get('detail'),
            errors=body.get('errors') or {},
            status_code=response.status_code,
        )

    def request(self, method: str, path: str, json: Any = None, params: Optional[dict] = None,
                authenticate: bool = True, retry: bool = True) -> ServiceResponse:
        response = self._send(method, path, json, params, authenticate)
        if response.status_code == 401 and authenticate and retry and self._refresher is not None:
            logger.info(f"{method} {path} returned 401, refreshing the access token")
            if self._refresher():
                response = self._send(method, path, json, params, authenticate)
        return self._to_response(response)

    def get(self, path, params=None, **kwargs):
        return self.request('GET', path, params=params, **kwargs)

    def post(self, path, json=None, **kwargs):
        return self.request('POST', path, json=json, **kwargs)

    def put(self, path, json=None, **kwargs):
        return self.request('PUT', path, json=json, **kwargs)

    def patch(self, path, json=None, **kwargs):
        return self.request('PATCH', path, json=json, **kwargs)

    def delete(self, path, **kwargs):
        return self.request('DELETE', path, **kwargs)
