from datetime import date

import httpx
import pytest

from utils.vendor_api import (
    GROUP_BY_STORE_GROUP,
    VendorAPIError,
    VendorSalesClient,
    normalize_sales_rows,
)


def _row(cdfil=7, cdfun=512, group=20, ve=100.0, dv=0.0, day=date(2024, 2, 1)):
    return {
        'CDFIL': cdfil, 'CDFUN': cdfun, 'NOMEFUN': 'ANA', 'CDGRUPO': group,
        'TOTAL_VLR_VE': ve, 'TOTAL_VLR_DV': dv,
        'TOTAL_QTD_VE': 1, 'TOTAL_QTD_DV': 0, 'DATA': day,
    }


class TestNormalizeSalesRows:
    """Tests for vendor row normalization."""

    def test_net_value_is_sold_minus_returned(self):
        df = normalize_sales_rows([{'CDFIL': '07', 'TOTAL_VLR_VE': '150.5', 'TOTAL_VLR_DV': 20}])

        assert df['NET_VALUE'].iloc[0] == pytest.approx(130.5)
        assert df['CDFIL'].iloc[0] == 7

    def test_malformed_numbers_become_zero(self):
        df = normalize_sales_rows([{'TOTAL_VLR_VE': 'abc', 'TOTAL_VLR_DV': None}])

        assert df['TOTAL_VLR_VE'].iloc[0] == 0
        assert df['NET_VALUE'].iloc[0] == 0

    def test_empty_rows(self):
        df = normalize_sales_rows([])

        assert df.empty
        assert 'NET_VALUE' in df.columns


class TestVendorSalesClient:
    """Tests for the vendor gateway."""

    async def test_fetch_sales_sends_filters(self, vendor_stub, make_vendor_client):
        stub = vendor_stub(rows=[_row(), _row(group=46, ve=50)])

        async with make_vendor_client(stub) as client:
            df = await client.fetch_sales(
                date(2024, 1, 21), date(2024, 2, 20),
                store_code='07', group_codes=[20, 25],
                group_by=GROUP_BY_STORE_GROUP,
            )

        params = stub.requests[0]
        assert params['dataIni'] == '2024-01-21'
        assert params['dataFim'] == '2024-02-20'
        assert params['filtroFiliais'] == '07'
        assert params['filtroGrupos'] == '20,25'
        assert params['groupBy'] == GROUP_BY_STORE_GROUP
        assert 'filtroFuncionarios' not in params
        assert list(df['CDGRUPO']) == [20]

    async def test_bearer_token_sent(self):
        seen = {}

        def handler(request):
            seen['auth'] = request.headers.get('authorization')
            return httpx.Response(200, json={'msg': []})

        client = VendorSalesClient('https://vendor.test', 'tok', transport=httpx.MockTransport(handler))
        async with client:
            await client.fetch('/x', {})

        assert seen['auth'] == 'Bearer tok'

    async def test_retries_server_errors(self, vendor_stub, make_vendor_client):
        """Two 503s then success: three attempts, rows returned."""
        stub = vendor_stub(rows=[_row()], status_sequence=[503, 503, 200])

        async with make_vendor_client(stub, max_retries=3) as client:
            df = await client.fetch_sales(date(2024, 2, 1), date(2024, 2, 1))

        assert len(stub.requests) == 3
        assert df['NET_VALUE'].sum() == pytest.approx(100)

    async def test_gives_up_after_max_retries(self, vendor_stub, make_vendor_client):
        stub = vendor_stub(status_sequence=[500, 500, 500, 200])

        async with make_vendor_client(stub, max_retries=3) as client:
            with pytest.raises(VendorAPIError):
                await client.fetch_sales(date(2024, 2, 1), date(2024, 2, 1))

        assert len(stub.requests) == 3

    async def test_client_errors_not_retried(self, vendor_stub, make_vendor_client):
        stub = vendor_stub(status_sequence=[401])

        async with make_vendor_client(stub) as client:
            with pytest.raises(VendorAPIError):
                await client.fetch_sales(date(2024, 2, 1), date(2024, 2, 1))

        assert len(stub.requests) == 1

    async def test_transport_errors_retried(self):
        attempts = []

        def handler(request):
            attempts.append(1)
            raise httpx.ConnectTimeout('timed out', request=request)

        client = VendorSalesClient(
            'https://vendor.test', None, max_retries=2, retry_delay_seconds=0,
            transport=httpx.MockTransport(handler),
        )
        async with client:
            with pytest.raises(VendorAPIError):
                await client.fetch('/x', {})

        assert len(attempts) == 2

    async def test_invalid_json_raises(self):
        client = VendorSalesClient(
            'https://vendor.test', None,
            transport=httpx.MockTransport(lambda r: httpx.Response(200, content=b'<html>')),
        )
        async with client:
            with pytest.raises(VendorAPIError):
                await client.fetch('/x', {})

    async def test_requires_context_manager(self):
        client = VendorSalesClient('https://vendor.test', None)
        with pytest.raises(RuntimeError):
            await client.fetch('/x', {})
