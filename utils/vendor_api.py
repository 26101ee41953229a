# utils/vendor_api.py
"""
Vendor Sales API Gateway

Version: 1.0.0
Features:
- Single gateway: fetch(endpoint, params) with bearer-token auth
- Hard timeout on every call
- Async retry decorator with exponential backoff
- Row normalization: numeric coercion and net value (sold - returned)
"""

import asyncio
import logging
from datetime import date
from functools import wraps
from typing import Optional, Dict, Any, List, Iterable

import httpx
import pandas as pd

from .config import config

logger = logging.getLogger(__name__)

# Vendor groupBy / orderBy expressions
GROUP_BY_STORE = "scefilial.CDFIL"
GROUP_BY_STORE_GROUP = "scefilial.CDFIL,sceprodu.CDGRUPO"
GROUP_BY_EMPLOYEE_STORE = "scefun.CDFUN,scefilial.CDFIL"
GROUP_BY_EMPLOYEE_STORE_GROUP = "scefun.CDFUN,scefilial.CDFIL,sceprodu.CDGRUPO"
DEFAULT_ORDER_BY = "scefun.NOME asc"

SALES_COLUMNS = [
    'CDFIL', 'CDFUN', 'NOMEFUN', 'CDGRUPO',
    'TOTAL_VLR_VE', 'TOTAL_VLR_DV', 'TOTAL_QTD_VE', 'TOTAL_QTD_DV',
]
NUMERIC_COLUMNS = ['TOTAL_VLR_VE', 'TOTAL_VLR_DV', 'TOTAL_QTD_VE', 'TOTAL_QTD_DV']


class VendorAPIError(Exception):
    """Vendor sales API call failed (after retries, or with a client error)."""
    pass


class _TransientStatusError(Exception):
    """5xx response; worth another attempt."""

    def __init__(self, status_code: int):
        super().__init__(f"vendor API returned HTTP {status_code}")
        self.status_code = status_code


# ==================== RETRY DECORATOR ====================

def with_retry(max_retries: int = None, delay: float = None, backoff: float = 2.0):
    """
    Decorator for automatic retry with exponential backoff

    Args:
        max_retries: Maximum number of attempts (defaults to client setting)
        delay: Initial delay between retries in seconds (defaults to client setting)
        backoff: Multiplier for delay after each retry
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(self, *args, **kwargs):
            attempts = max(1, max_retries or self.max_retries)
            current_delay = self.retry_delay if delay is None else delay
            last_exception = None

            for attempt in range(attempts):
                try:
                    return await func(self, *args, **kwargs)
                except (httpx.TransportError, _TransientStatusError) as e:
                    last_exception = e
                    if attempt < attempts - 1:
                        logger.warning(
                            f"{func.__name__} attempt {attempt + 1} failed ({e}), "
                            f"retrying in {current_delay}s..."
                        )
                        await asyncio.sleep(current_delay)
                        current_delay *= backoff
                    else:
                        logger.error(f"{func.__name__} failed after {attempts} attempts: {e}")

            raise VendorAPIError(
                f"{func.__name__} failed after {attempts} attempts: {last_exception}"
            ) from last_exception
        return wrapper
    return decorator


# ==================== ROW NORMALIZATION ====================

def normalize_sales_rows(rows: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """
    Build a DataFrame from raw vendor rows.

    Malformed numeric fields become 0; NET_VALUE = TOTAL_VLR_VE - TOTAL_VLR_DV.
    CDFIL/CDFUN/CDGRUPO are coerced to nullable integers so that "07" and 7
    compare equal.
    """
    df = pd.DataFrame(list(rows))

    for col in SALES_COLUMNS:
        if col not in df.columns:
            df[col] = None

    for col in NUMERIC_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors='coerce').fillna(0.0).astype(float)

    for col in ['CDFIL', 'CDFUN', 'CDGRUPO']:
        df[col] = pd.to_numeric(df[col], errors='coerce').astype('Int64')

    df['NET_VALUE'] = df['TOTAL_VLR_VE'] - df['TOTAL_VLR_DV']
    return df


# ==================== VENDOR CLIENT ====================

class VendorSalesClient:
    """
    Async client for the vendor sales API.

    One instance per event loop (httpx.AsyncClient is loop-bound).

    Usage:
        async with get_vendor_client() as client:
            df = await client.fetch_sales(
                start, end, store_code="07", group_codes=[20, 25],
                group_by=GROUP_BY_STORE_GROUP
            )
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str],
        endpoint: str = "/financeiro/vendas-por-funcionario",
        timeout_seconds: float = 15.0,
        max_retries: int = 3,
        retry_delay_seconds: float = 0.5,
        extra_headers: Dict[str, str] = None,
        transport: httpx.AsyncBaseTransport = None
    ):
        self.base_url = base_url.rstrip('/')
        self.endpoint = endpoint
        self.timeout = httpx.Timeout(timeout_seconds)
        self.max_retries = max_retries
        self.retry_delay = retry_delay_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        self.headers = {'accept': 'application/json'}
        if token:
            self.headers['authorization'] = f"Bearer {token}"
        if extra_headers:
            self.headers.update(extra_headers)

    async def __aenter__(self) -> "VendorSalesClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport
        )
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ==================== GATEWAY ====================

    @with_retry()
    async def fetch(self, endpoint: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Call an API endpoint and return its row list.

        Args:
            endpoint: Path relative to the base URL
            params: Query parameters (None values are dropped)

        Returns:
            List of row dicts (the response "msg" array)
        """
        if self._client is None:
            raise RuntimeError("VendorSalesClient must be used as an async context manager")

        query = {k: str(v) for k, v in params.items() if v is not None and v != ''}
        logger.debug(f"Vendor API {endpoint} params={query}")

        response = await self._client.get(endpoint, params=query)

        if response.status_code >= 500:
            raise _TransientStatusError(response.status_code)
        if response.status_code >= 400:
            logger.error(f"❌ Vendor API {endpoint} rejected request: HTTP {response.status_code}")
            raise VendorAPIError(f"vendor API returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise VendorAPIError(f"vendor API returned invalid JSON: {e}") from e

        rows = payload.get('msg', []) if isinstance(payload, dict) else payload
        if not isinstance(rows, list):
            raise VendorAPIError("vendor API response has no row list")

        logger.debug(f"Vendor API {endpoint} returned {len(rows)} rows")
        return rows

    # ==================== SALES QUERIES ====================

    async def fetch_sales(
        self,
        start_date: date,
        end_date: date,
        store_code: str = None,
        group_codes: List[int] = None,
        employee_code: str = None,
        group_by: str = GROUP_BY_STORE,
        order_by: str = DEFAULT_ORDER_BY
    ) -> pd.DataFrame:
        """
        Fetch sales rows for a date range, normalized.

        Args:
            start_date: First day (inclusive)
            end_date: Last day (inclusive)
            store_code: Vendor store code (filtroFiliais)
            group_codes: Product group codes (filtroGrupos); None for all groups
            employee_code: Vendor employee code (filtroFuncionarios)
            group_by: Server-side grouping expression
            order_by: Server-side ordering expression

        Returns:
            DataFrame with SALES_COLUMNS plus NET_VALUE
        """
        params = {
            'dataIni': start_date.isoformat(),
            'dataFim': end_date.isoformat(),
            'groupBy': group_by,
            'orderBy': order_by,
            'filtroFiliais': store_code,
            'filtroFuncionarios': employee_code,
            'filtroGrupos': ",".join(str(c) for c in group_codes) if group_codes else None,
        }

        rows = await self.fetch(self.endpoint, params)
        return normalize_sales_rows(rows)


def get_vendor_client(transport: httpx.AsyncBaseTransport = None) -> VendorSalesClient:
    """
    Build a vendor client from configuration.

    Not cached: each event loop gets its own client.
    """
    api_config = config.get_vendor_api_config()

    if not api_config.get('base_url'):
        logger.warning("⚠️ Vendor API base URL not configured")

    return VendorSalesClient(
        base_url=api_config.get('base_url', ''),
        token=api_config.get('token'),
        endpoint=api_config.get('endpoint', "/financeiro/vendas-por-funcionario"),
        timeout_seconds=api_config.get('timeout_seconds', 15.0),
        max_retries=api_config.get('max_retries', 3),
        retry_delay_seconds=api_config.get('retry_delay_seconds', 0.5),
        extra_headers=api_config.get('extra_headers'),
        transport=transport
    )


__all__ = [
    'VendorAPIError',
    'VendorSalesClient',
    'get_vendor_client',
    'normalize_sales_rows',
    'with_retry',
    'GROUP_BY_STORE',
    'GROUP_BY_STORE_GROUP',
    'GROUP_BY_EMPLOYEE_STORE',
    'GROUP_BY_EMPLOYEE_STORE_GROUP',
]
