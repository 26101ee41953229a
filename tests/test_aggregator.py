from datetime import date

import pytest

from utils.goal_pacing.aggregator import (
    DateWindow,
    SalesAggregator,
    SOURCE_LEDGER,
    SOURCE_VENDOR,
)
from utils.goal_pacing.exceptions import GoalPacingError
from utils.goal_pacing.queries import Subject, SUBJECT_COLLABORATOR

FEB_1 = date(2024, 2, 1)
FEB_2 = date(2024, 2, 2)
PERIOD_TO_DATE = DateWindow(date(2024, 1, 21), date(2024, 2, 10))


def vendor_row(cdfil=7, cdfun=512, group=None, ve=0.0, dv=0.0, day=FEB_1):
    return {
        'CDFIL': cdfil, 'CDFUN': cdfun, 'NOMEFUN': 'X', 'CDGRUPO': group,
        'TOTAL_VLR_VE': ve, 'TOTAL_VLR_DV': dv,
        'TOTAL_QTD_VE': 1, 'TOTAL_QTD_DV': 0, 'DATA': day,
    }


# =============================================================================
# DateWindow
# =============================================================================

class TestDateWindow:
    """Tests for window clipping."""

    def test_clip_inside(self, period):
        window = DateWindow(date(2024, 2, 1), date(2024, 2, 5)).clip(period)
        assert window == DateWindow(date(2024, 2, 1), date(2024, 2, 5))

    def test_clip_trims_to_period(self, period):
        window = DateWindow(date(2024, 1, 1), date(2024, 3, 1)).clip(period)
        assert window == DateWindow(period.start_date, period.end_date)

    def test_clip_outside_is_none(self, period):
        assert DateWindow(date(2024, 3, 1), date(2024, 3, 1)).clip(period) is None


# =============================================================================
# Ledger source
# =============================================================================

class TestLedgerSource:
    """Tests for sums from the local sales ledger."""

    async def test_aliased_category_sums_every_tag(self, make_queries, aliases, collaborator):
        queries = make_queries(ledger={
            ('collaborator', 41): [
                ('generico', FEB_1, 300.0),
                ('similar', FEB_1, 200.0),
                ('similar', FEB_2, 50.0),
                ('goodlife', FEB_1, 80.0),
            ],
        })
        aggregator = SalesAggregator(queries, aliases)

        totals = await aggregator.sum_sales_by_category(
            collaborator, ['generico_similar', 'goodlife', 'dermocosmetico'],
            PERIOD_TO_DATE, SOURCE_LEDGER,
        )

        assert totals == {'generico_similar': 550.0, 'goodlife': 80.0, 'dermocosmetico': 0.0}
        assert queries.calls.count('get_ledger_sales') == 1

    async def test_aliasing_is_associative(self, make_queries, aliases, collaborator):
        """generico + similar separately equals generico_similar in one query."""
        queries = make_queries(ledger={
            ('collaborator', 41): [
                ('generico', FEB_1, 123.45),
                ('similar', FEB_1, 67.89),
                ('similar', FEB_2, 10.0),
            ],
        })
        aggregator = SalesAggregator(queries, aliases)

        separate = (
            await aggregator.sum_sales(collaborator, 'generico', PERIOD_TO_DATE)
            + await aggregator.sum_sales(collaborator, 'similar', PERIOD_TO_DATE)
        )
        combined = await aggregator.sum_sales(collaborator, 'generico_similar', PERIOD_TO_DATE)

        assert combined == pytest.approx(separate)

    async def test_store_aliases(self, make_queries, aliases, store):
        queries = make_queries(ledger={
            ('store', 3): [
                ('rentaveis20', FEB_1, 100.0),
                ('rentaveis25', FEB_1, 40.0),
                ('brinquedo', FEB_1, 15.0),
                ('goodlife', FEB_1, 9.0),
            ],
        })
        aggregator = SalesAggregator(queries, aliases)

        totals = await aggregator.sum_sales_by_category(
            store, ['r_mais', 'conveniencia_r_mais', 'saude'], PERIOD_TO_DATE, SOURCE_LEDGER,
        )

        assert totals == {'r_mais': 140.0, 'conveniencia_r_mais': 15.0, 'saude': 9.0}

    async def test_failure_reads_zero(self, make_queries, aliases, collaborator):
        queries = make_queries(failures={'get_ledger_sales'})
        aggregator = SalesAggregator(queries, aliases)

        totals = await aggregator.sum_sales_by_category(
            collaborator, ['geral', 'goodlife'], PERIOD_TO_DATE, SOURCE_LEDGER,
        )

        assert totals == {'geral': 0.0, 'goodlife': 0.0}

    async def test_empty_window_issues_no_query(self, make_queries, aliases, collaborator):
        queries = make_queries()
        aggregator = SalesAggregator(queries, aliases)

        totals = await aggregator.sum_sales_by_category(
            collaborator, ['geral'], DateWindow(FEB_2, FEB_1), SOURCE_LEDGER,
        )

        assert totals == {'geral': 0.0}
        assert queries.calls == []

    async def test_unknown_source_rejected(self, make_queries, aliases, collaborator):
        aggregator = SalesAggregator(make_queries(), aliases)
        with pytest.raises(GoalPacingError):
            await aggregator.sum_sales(collaborator, 'geral', PERIOD_TO_DATE, 'csv')


# =============================================================================
# Vendor source
# =============================================================================

class TestVendorSource:
    """Tests for sums from the vendor sales API."""

    async def test_store_categories_in_two_requests(
        self, make_queries, aliases, store, vendor_stub, make_vendor_client
    ):
        """One unfiltered request for geral, one grouped request for the rest."""
        stub = vendor_stub(rows=[
            vendor_row(group=20, ve=100.0, dv=10.0),
            vendor_row(group=25, ve=50.0),
            vendor_row(group=46, ve=30.0),
            vendor_row(group=36, ve=20.0),
            vendor_row(group=13, ve=5.0),
            vendor_row(group=22, ve=12.0),
            vendor_row(group=99, ve=1000.0),
        ])

        async with make_vendor_client(stub) as client:
            aggregator = SalesAggregator(make_queries(), aliases, vendor_client=client)
            totals = await aggregator.sum_sales_by_category(
                store,
                ['geral', 'r_mais', 'perfumaria_r_mais', 'conveniencia_r_mais', 'saude'],
                PERIOD_TO_DATE, SOURCE_VENDOR,
            )

        assert len(stub.requests) == 2
        assert totals['geral'] == pytest.approx(1207.0)
        assert totals['r_mais'] == pytest.approx(140.0)
        assert totals['perfumaria_r_mais'] == pytest.approx(30.0)
        assert totals['conveniencia_r_mais'] == pytest.approx(25.0)
        assert totals['saude'] == pytest.approx(12.0)

        grouped = next(p for p in stub.requests if 'filtroGrupos' in p)
        assert grouped['filtroGrupos'] == '13,20,22,25,36,46'
        assert grouped['filtroFiliais'] == '07'

    async def test_rows_of_other_stores_dropped(
        self, make_queries, aliases, store, vendor_stub, make_vendor_client
    ):
        """Rows the API returns for another CDFIL are filtered out client-side."""
        stub = vendor_stub(rows=[
            vendor_row(cdfil=7, ve=100.0),
            vendor_row(cdfil=8, ve=999.0),
        ])

        async with make_vendor_client(stub) as client:
            aggregator = SalesAggregator(make_queries(), aliases, vendor_client=client)
            total = await aggregator.sum_sales(store, 'geral', PERIOD_TO_DATE, SOURCE_VENDOR)

        assert total == pytest.approx(100.0)
        assert len(stub.requests) == 1

    async def test_collaborator_filtered_by_employee(
        self, make_queries, aliases, collaborator, vendor_stub, make_vendor_client
    ):
        stub = vendor_stub(rows=[
            vendor_row(cdfun=512, group=22, ve=40.0),
            vendor_row(cdfun=600, group=22, ve=70.0),
        ])

        async with make_vendor_client(stub) as client:
            aggregator = SalesAggregator(make_queries(), aliases, vendor_client=client)
            totals = await aggregator.sum_sales_by_category(
                collaborator, ['geral', 'goodlife'], PERIOD_TO_DATE, SOURCE_VENDOR,
            )

        assert totals == {'geral': pytest.approx(40.0), 'goodlife': pytest.approx(40.0)}
        assert all(p['filtroFuncionarios'] == '512' for p in stub.requests)

    async def test_grouped_failure_only_zeroes_grouped(
        self, make_queries, aliases, store, vendor_stub, make_vendor_client
    ):
        stub = vendor_stub(rows=[vendor_row(group=20, ve=100.0)], fail_grouped=True)

        async with make_vendor_client(stub) as client:
            aggregator = SalesAggregator(make_queries(), aliases, vendor_client=client)
            totals = await aggregator.sum_sales_by_category(
                store, ['geral', 'r_mais'], PERIOD_TO_DATE, SOURCE_VENDOR,
            )

        assert totals == {'geral': pytest.approx(100.0), 'r_mais': 0.0}

    async def test_general_failure_only_zeroes_general(
        self, make_queries, aliases, store, vendor_stub, make_vendor_client
    ):
        stub = vendor_stub(rows=[vendor_row(group=20, ve=100.0)], fail_general=True)

        async with make_vendor_client(stub) as client:
            aggregator = SalesAggregator(make_queries(), aliases, vendor_client=client)
            totals = await aggregator.sum_sales_by_category(
                store, ['geral', 'r_mais'], PERIOD_TO_DATE, SOURCE_VENDOR,
            )

        assert totals == {'geral': 0.0, 'r_mais': pytest.approx(100.0)}

    async def test_untracked_category_reads_zero_without_request(
        self, make_queries, aliases, collaborator, vendor_stub, make_vendor_client
    ):
        stub = vendor_stub()

        async with make_vendor_client(stub) as client:
            aggregator = SalesAggregator(make_queries(), aliases, vendor_client=client)
            totals = await aggregator.sum_sales_by_category(
                collaborator, ['dermocosmetico'], PERIOD_TO_DATE, SOURCE_VENDOR,
            )

        assert totals == {'dermocosmetico': 0.0}
        assert stub.requests == []

    async def test_collaborator_without_code_reads_zero(
        self, make_queries, aliases, vendor_stub, make_vendor_client
    ):
        """No employee code: no unfiltered (whole store) request."""
        nobody = Subject(kind=SUBJECT_COLLABORATOR, id=5, name='Sem código', store_vendor_code='07')
        stub = vendor_stub(rows=[vendor_row(ve=100.0)])

        async with make_vendor_client(stub) as client:
            aggregator = SalesAggregator(make_queries(), aliases, vendor_client=client)
            totals = await aggregator.sum_sales_by_category(
                nobody, ['geral'], PERIOD_TO_DATE, SOURCE_VENDOR,
            )

        assert totals == {'geral': 0.0}
        assert stub.requests == []

    async def test_vendor_source_needs_client(self, make_queries, aliases, store):
        aggregator = SalesAggregator(make_queries(), aliases)
        with pytest.raises(GoalPacingError):
            await aggregator.sum_sales(store, 'geral', PERIOD_TO_DATE, SOURCE_VENDOR)
