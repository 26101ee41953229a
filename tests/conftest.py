import json
from datetime import date
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from utils.vendor_api import VendorSalesClient
from utils.goal_pacing.categories import CategoryAliasTable
from utils.goal_pacing.constants import DEFAULT_CATEGORY_ALIASES
from utils.goal_pacing.queries import Subject, SUBJECT_STORE, SUBJECT_COLLABORATOR
from utils.goal_pacing.workdays import Period, AbsenceRecord


@pytest.fixture
def period():
    """Goal period 21/01/2024 - 20/02/2024."""
    return Period(start_date=date(2024, 1, 21), end_date=date(2024, 2, 20), id=7)


@pytest.fixture
def aliases():
    """Built-in category alias table."""
    return CategoryAliasTable.from_dict(DEFAULT_CATEGORY_ALIASES)


@pytest.fixture
def store():
    """Store 07 in the 'sul' region."""
    return Subject(
        kind=SUBJECT_STORE, id=3, name='Loja Centro-Sul', vendor_code='07',
        store_id=3, store_vendor_code='07', region='sul',
    )


@pytest.fixture
def collaborator():
    """Pharmacist of store 07 with vendor employee code 512."""
    return Subject(
        kind=SUBJECT_COLLABORATOR, id=41, name='Ana Souza', vendor_code='512',
        store_id=3, store_vendor_code='07', role='farmaceutico',
    )


class FakeQueries:
    """
    In-memory stand-in for GoalPacingQueries.

    Any attribute listed in `failures` raises RuntimeError when awaited.
    """

    def __init__(
        self,
        stores=None,
        collaborators=None,
        store_targets=None,
        collaborator_targets=None,
        team_targets=None,
        team_members=None,
        absences=None,
        ledger=None,
        failures=(),
    ):
        self.stores = stores or {}
        self.collaborators = collaborators or {}
        self.store_targets = store_targets or {}
        self.collaborator_targets = collaborator_targets or {}
        self.team_targets = team_targets or {}
        self.team_members = team_members or {}
        self.absences = absences or []
        # {(subject_kind, subject_id): [(tag, day, amount), ...]}
        self.ledger = ledger or {}
        self.failures = set(failures)
        self.calls = []

    def _check(self, name):
        self.calls.append(name)
        if name in self.failures:
            raise RuntimeError(f"{name} unavailable")

    async def get_store(self, store_id):
        from utils.goal_pacing.exceptions import StoreNotFoundError
        self._check('get_store')
        if store_id not in self.stores:
            raise StoreNotFoundError(f"Store {store_id} not found")
        return self.stores[store_id]

    async def get_collaborator(self, user_id):
        self._check('get_collaborator')
        return self.collaborators.get(user_id)

    async def get_store_targets(self, store_id, period_id):
        self._check('get_store_targets')
        return dict(self.store_targets.get(store_id, {}))

    async def get_collaborator_targets(self, user_id, period_id):
        self._check('get_collaborator_targets')
        return dict(self.collaborator_targets.get(user_id, {}))

    async def get_team_targets(self, store_id, period_id):
        self._check('get_team_targets')
        return {k: dict(v) for k, v in self.team_targets.items()}

    async def get_team_members(self, store_id):
        self._check('get_team_members')
        return list(self.team_members.get(store_id, []))

    async def get_absences(self, user_ids, start_date, end_date):
        self._check('get_absences')
        return [
            a for a in self.absences
            if a.subject_id in user_ids and start_date <= a.day <= end_date
        ]

    async def get_ledger_sales(self, subject, tags, start_date, end_date):
        self._check('get_ledger_sales')
        totals = {}
        for tag, day, amount in self.ledger.get((subject.kind, subject.id), []):
            if tag in tags and start_date <= day <= end_date:
                totals[tag] = totals.get(tag, 0.0) + amount
        return totals


@pytest.fixture
def make_queries():
    """Factory for FakeQueries."""
    return FakeQueries


@pytest.fixture
def absence():
    """Factory for absence records."""
    def _make(subject_id, day, kind='folga'):
        return AbsenceRecord.from_row({
            'usuario_id': subject_id, 'data_folga': day, 'tipo_ausencia': kind,
        })
    return _make


class VendorStub:
    """
    httpx.MockTransport handler serving vendor rows.

    rows: list of dicts with CDFIL, CDFUN, CDGRUPO, TOTAL_VLR_VE, TOTAL_VLR_DV
    and DATA (date). The handler filters by date range and group codes like
    the real API and records every request's query params.
    """

    def __init__(self, rows=None, fail_grouped=False, fail_general=False, status_sequence=None):
        self.rows = rows or []
        self.fail_grouped = fail_grouped
        self.fail_general = fail_general
        self.status_sequence = list(status_sequence or [])
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        params = {k: v[0] for k, v in parse_qs(urlparse(str(request.url)).query).items()}
        self.requests.append(params)

        if self.status_sequence:
            status = self.status_sequence.pop(0)
            if status != 200:
                return httpx.Response(status, json={'error': 'boom'})

        grouped = 'filtroGrupos' in params
        if (grouped and self.fail_grouped) or (not grouped and self.fail_general):
            return httpx.Response(400, json={'error': 'bad request'})

        start = date.fromisoformat(params['dataIni'])
        end = date.fromisoformat(params['dataFim'])
        groups = {int(g) for g in params['filtroGrupos'].split(',')} if grouped else None

        out = []
        for row in self.rows:
            if not start <= row['DATA'] <= end:
                continue
            if groups is not None and row.get('CDGRUPO') not in groups:
                continue
            item = {k: v for k, v in row.items() if k != 'DATA'}
            if not grouped:
                item.pop('CDGRUPO', None)
            out.append(item)

        return httpx.Response(200, content=json.dumps({'msg': out}))


@pytest.fixture
def vendor_stub():
    """Factory for a VendorStub."""
    return VendorStub


@pytest.fixture
def make_vendor_client():
    """Build a VendorSalesClient over a stub transport (use with `async with`)."""
    def _make(stub, max_retries=3):
        return VendorSalesClient(
            base_url='https://vendor.test',
            token='secret-token',
            max_retries=max_retries,
            retry_delay_seconds=0,
            transport=httpx.MockTransport(stub),
        )
    return _make
