"""
Base HTTP client for *arr API communication.
Uses urllib to avoid external dependencies.
"""

import json
import time
import urllib.request
import urllib.error
import urllib.parse
from datetime import datetime
from typing import Dict, Any, List, Optional, Tuple, Union
from abc import ABC, abstractmethod


class APIError(Exception):
    """Exception raised for API errors."""
    def __init__(self, message: str, status_code: int = 0, response: str = ""):
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.message)


def extract_records(payload: Any) -> Tuple[List[Dict], int]:
    """Pull the record list and total count out of a history payload.

    Sonarr/Radarr return a paging object with 'records', Prowlarr versions
    differ ('records', 'results', 'history' or a bare list).
    """
    if isinstance(payload, list):
        return payload, len(payload)
    if not isinstance(payload, dict):
        return [], 0

    records: List[Dict] = []
    for key in ('records', 'results', 'history'):
        if isinstance(payload.get(key), list):
            records = payload[key]
            break

    total = payload.get('totalRecords', payload.get('total'))
    if not isinstance(total, int) or isinstance(total, bool):
        total = len(records)
    return records, total


class BaseClient(ABC):
    """Base class for *arr API clients."""

    service = ""

    def __init__(self, url: str, api_key: str, name: str = ""):
        self.base_url = url.rstrip('/')
        self.api_key = api_key
        self.name = name or self.__class__.__name__
        self.timeout = 120  # Large histories can be slow
        self._avg_response_ms: Optional[float] = None
        self._response_samples = 0

    @property
    @abstractmethod
    def api_version(self) -> str:
        """API version path (e.g., '/api/v3')."""
        pass

    def _build_url(self, endpoint: str, params: Optional[Dict] = None) -> str:
        """Build full URL with optional query parameters."""
        url = f"{self.base_url}{self.api_version}/{endpoint.lstrip('/')}"
        if params:
            query = urllib.parse.urlencode(params)
            url = f"{url}?{query}"
        return url

    def _get_headers(self) -> Dict[str, str]:
        """Get request headers with API key."""
        return {
            'X-Api-Key': self.api_key,
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }

    def _request(self, method: str, endpoint: str,
                 params: Optional[Dict] = None,
                 data: Optional[Dict] = None) -> Any:
        """Make HTTP request with response time tracking."""
        url = self._build_url(endpoint, params)
        headers = self._get_headers()

        body = None
        if data is not None:
            body = json.dumps(data).encode('utf-8')

        req = urllib.request.Request(url, data=body, headers=headers, method=method)

        start_time = time.time()
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                content = response.read().decode('utf-8')
                self._update_response_metrics((time.time() - start_time) * 1000)

                if content:
                    return json.loads(content)
                return {}
        except urllib.error.HTTPError as e:
            response_body = ""
            try:
                response_body = e.read().decode('utf-8', errors='replace')
            except OSError:
                pass
            raise APIError(
                f"HTTP {e.code}: {e.reason}",
                status_code=e.code,
                response=response_body
            )
        except urllib.error.URLError as e:
            raise APIError(f"Connection error: {e.reason}")
        except json.JSONDecodeError as e:
            raise APIError(f"Invalid JSON response: {e}")

    def _update_response_metrics(self, elapsed_ms: float):
        """Track response times (exponential moving average)."""
        if self._avg_response_ms is None:
            self._avg_response_ms = elapsed_ms
        else:
            alpha = 0.1
            self._avg_response_ms = alpha * elapsed_ms + (1 - alpha) * self._avg_response_ms
        self._response_samples += 1

    def get_avg_response_ms(self) -> float:
        """Get average response time in milliseconds."""
        return self._avg_response_ms if self._avg_response_ms is not None else 500

    def get(self, endpoint: str, params: Optional[Dict] = None) -> Any:
        """HTTP GET request."""
        return self._request('GET', endpoint, params=params)

    def test_connection(self) -> Dict[str, Any]:
        """Test connection to the service."""
        try:
            status = self.get('system/status')
            version = status.get('version', '') if isinstance(status, dict) else ''
            return {'success': True, 'message': f"Connected {version}".strip()}
        except APIError as e:
            return {'success': False, 'message': str(e)}

    # ==================== History ====================

    def history_params(self) -> Dict[str, Any]:
        """Extra query parameters for the history endpoint."""
        return {}

    def get_history(self, page: int = 1, page_size: int = 50,
                    since: Optional[Union[str, datetime]] = None,
                    until: Optional[Union[str, datetime]] = None) -> Any:
        """Get one page of history, newest first."""
        params: Dict[str, Any] = {
            'page': page,
            'pageSize': page_size,
            'sortKey': 'date',
            'sortDirection': 'descending',
        }
        params.update(self.history_params())
        if since:
            params['since'] = since.isoformat() if isinstance(since, datetime) else since
        if until:
            params['until'] = until.isoformat() if isinstance(until, datetime) else until
        return self.get('history', params=params)

    def get_all_history(self, page_size: int = 500, max_pages: int = 50,
                        since: Optional[Union[str, datetime]] = None,
                        until: Optional[Union[str, datetime]] = None) -> List[Dict]:
        """Get every history record across pages.

        Stops at the first short page, or after max_pages as a safety limit.
        """
        all_records: List[Dict] = []
        page = 1

        while page <= max_pages:
            payload = self.get_history(page=page, page_size=page_size, since=since, until=until)
            records, total = extract_records(payload)
            all_records.extend(records)

            # Bare lists are not paginated
            if isinstance(payload, list):
                break
            if len(records) < page_size or len(all_records) >= total:
                break
            page += 1

        return all_records
