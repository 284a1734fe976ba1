"""
API Client - thin wrapper over the JuriSync REST API.
One method per endpoint; records come back as Contract / Folder dataclasses
or plain dicts for the child collections.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from jurisync.bus.events import bus, EVENT_CONTRACTS_LOADED
from jurisync.config import config
from jurisync.engine.records import contract_from_dict, contracts_from_payload, folder_from_dict
from jurisync.models import Contract, Folder

logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
    """HTTP or transport failure talking to the JuriSync API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ApiClient:

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or config.API_URL).rstrip('/')
        self.token = config.API_TOKEN if token is None else token
        self.timeout = timeout or config.API_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.token:
            headers['Authorization'] = f"Bearer {self.token}"
        return headers

    def request(self, method: str, path: str, body: Any = None, params: Optional[Dict[str, Any]] = None):
        """
        Send a request and return the decoded JSON (or text for non-JSON responses).
        Raises ApiError with the server's `error` message on non-2xx responses.
        """
        url = f"{self.base_url}{path}"
        params = {k: v for k, v in (params or {}).items() if v not in (None, '')}
        logger.debug(f"{method} {url} params={params}")

        try:
            response = self.session.request(
                method, url, json=body, params=params or None,
                headers=self._headers(), timeout=(10, self.timeout),
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise ApiError(f"Could not reach JuriSync API at {self.base_url}: {e}")

        if not response.ok:
            message = f"Erro {response.status_code}"
            try:
                message = response.json().get('error') or message
            except (ValueError, AttributeError):
                pass
            logger.error(f"{method} {path} -> {response.status_code}: {message}")
            raise ApiError(message, status_code=response.status_code)

        if 'application/json' in response.headers.get('content-type', ''):
            return response.json()
        return response.text

    # -------------------------------------------------------------------------
    # Contracts
    # -------------------------------------------------------------------------

    def list_contracts(
        self,
        status: Optional[str] = None,
        q: Optional[str] = None,
        folder_id: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Contract]:
        payload = self.request('GET', '/api/contracts', params={
            'status': status, 'q': q, 'folderId': folder_id, 'page': page, 'limit': limit,
        })
        contracts = contracts_from_payload(payload)
        logger.info(f"Loaded {len(contracts)} contracts from API")
        bus.emit(EVENT_CONTRACTS_LOADED, {'count': len(contracts), 'source': self.base_url})
        return contracts

    def get_contract(self, contract_id: str) -> Contract:
        return contract_from_dict(self.request('GET', f"/api/contracts/{contract_id}"))

    def create_contract(self, payload: Dict[str, Any]) -> Contract:
        return contract_from_dict(self.request('POST', '/api/contracts', body=payload))

    def update_contract(self, contract_id: str, payload: Dict[str, Any]) -> Contract:
        return contract_from_dict(self.request('PATCH', f"/api/contracts/{contract_id}", body=payload))

    def list_comments(self, contract_id: str) -> List[Dict[str, Any]]:
        return self.request('GET', f"/api/contracts/{contract_id}/comments")

    def add_comment(
        self,
        contract_id: str,
        content: str,
        is_private: bool = False,
        mentions: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        return self.request('POST', f"/api/contracts/{contract_id}/comments", body={
            'content': content, 'isPrivate': is_private, 'mentions': mentions or [],
        })

    def list_history(self, contract_id: str) -> List[Dict[str, Any]]:
        return self.request('GET', f"/api/contracts/{contract_id}/history")

    def list_notifications(self, contract_id: str) -> List[Dict[str, Any]]:
        return self.request('GET', f"/api/contracts/{contract_id}/notifications")

    # -------------------------------------------------------------------------
    # Folders
    # -------------------------------------------------------------------------

    def list_folders(self) -> List[Folder]:
        payload = self.request('GET', '/api/folders')
        if isinstance(payload, dict):
            payload = payload.get('folders') or payload.get('data') or []
        return [folder_from_dict(item) for item in payload if isinstance(item, dict)]
