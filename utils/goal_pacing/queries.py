# utils/goal_pacing/queries.py
"""
SQL Queries and Data Loading for Goal Pacing

Handles all database interactions:
- Goal periods (periodos_meta)
- Stores and collaborators (lojas, usuarios) as pacing subjects
- Targets (metas_loja + metas_loja_categorias, metas)
- Absences (folgas)
- Ledger sales (vendas_loja, vendas) grouped by category

Unlike a dashboard query that can render an empty frame, every read here
raises on failure: the orchestrator must tell "no rows" from "source down".
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence

import pandas as pd

from utils.db import execute_query_df
from .exceptions import StoreNotFoundError
from .workdays import AbsenceRecord, Period

logger = logging.getLogger(__name__)

SUBJECT_STORE = 'store'
SUBJECT_COLLABORATOR = 'collaborator'


@dataclass(frozen=True)
class Subject:
    """A store or a collaborator whose sales are paced against targets."""

    kind: str
    id: int
    name: str
    vendor_code: Optional[str] = None
    store_id: Optional[int] = None
    store_vendor_code: Optional[str] = None
    role: Optional[str] = None
    region: Optional[str] = None

    @property
    def is_store(self) -> bool:
        return self.kind == SUBJECT_STORE


def store_vendor_code(numero) -> Optional[str]:
    """Vendor filial code: store number zero-padded to two digits."""
    if numero is None or pd.isna(numero) or str(numero).strip() == '':
        return None
    return str(numero).strip().zfill(2)


class GoalPacingQueries:
    """
    Data loading class for goal pacing.

    Usage:
        queries = GoalPacingQueries()

        period = await queries.get_period(period_id)
        store = await queries.get_store(store_id)
        targets = await queries.get_store_targets(store.id, period.id)
    """

    # =========================================================================
    # PERIODS
    # =========================================================================

    async def get_periods(self) -> List[Period]:
        """All goal periods, newest first."""
        query = """
            SELECT id, data_inicio, data_fim, descricao, status
            FROM periodos_meta
            ORDER BY data_inicio DESC
        """
        df = await self._execute_query(query, {}, "get_periods")
        return [self._row_to_period(row) for row in df.to_dict('records')]

    async def get_period(self, period_id: int) -> Optional[Period]:
        query = """
            SELECT id, data_inicio, data_fim, descricao, status
            FROM periodos_meta
            WHERE id = :period_id
        """
        df = await self._execute_query(query, {'period_id': period_id}, "get_period")
        if df.empty:
            return None
        return self._row_to_period(df.iloc[0].to_dict())

    @staticmethod
    def _row_to_period(row: Dict) -> Period:
        return Period(
            start_date=pd.Timestamp(row['data_inicio']).date(),
            end_date=pd.Timestamp(row['data_fim']).date(),
            id=int(row['id']),
            description=row.get('descricao'),
        )

    # =========================================================================
    # SUBJECTS
    # =========================================================================

    async def get_stores(self) -> pd.DataFrame:
        """Store list for selectors."""
        query = """
            SELECT id, nome, numero, regiao
            FROM lojas
            ORDER BY numero
        """
        return await self._execute_query(query, {}, "get_stores")

    async def get_store(self, store_id: int) -> Subject:
        """
        Load a store as a pacing subject.

        Raises:
            StoreNotFoundError: unknown store, or store without a number
                (no vendor code to filter by)
        """
        query = """
            SELECT id, nome, numero, regiao
            FROM lojas
            WHERE id = :store_id
        """
        df = await self._execute_query(query, {'store_id': store_id}, "get_store")
        if df.empty:
            raise StoreNotFoundError(f"Store {store_id} not found")

        row = df.iloc[0].to_dict()
        code = store_vendor_code(row.get('numero'))
        if code is None:
            raise StoreNotFoundError(f"Store {store_id} has no vendor store code")

        return Subject(
            kind=SUBJECT_STORE,
            id=int(row['id']),
            name=row.get('nome') or f"Loja {code}",
            vendor_code=code,
            store_id=int(row['id']),
            store_vendor_code=code,
            region=(row.get('regiao') or None),
        )

    async def get_collaborator(self, user_id: int) -> Optional[Subject]:
        query = """
            SELECT u.id, u.nome, u.tipo, u.loja_id, u.codigo_funcionario,
                   l.numero AS loja_numero, l.regiao
            FROM usuarios u
            LEFT JOIN lojas l ON l.id = u.loja_id
            WHERE u.id = :user_id
        """
        df = await self._execute_query(query, {'user_id': user_id}, "get_collaborator")
        if df.empty:
            return None
        return self._row_to_collaborator(df.iloc[0].to_dict())

    async def get_team_members(self, store_id: int) -> List[Subject]:
        """Active collaborators of a store."""
        query = """
            SELECT u.id, u.nome, u.tipo, u.loja_id, u.codigo_funcionario,
                   l.numero AS loja_numero, l.regiao
            FROM usuarios u
            JOIN lojas l ON l.id = u.loja_id
            WHERE u.loja_id = :store_id
              AND u.status = 'ativo'
            ORDER BY u.nome
        """
        df = await self._execute_query(query, {'store_id': store_id}, "get_team_members")
        return [self._row_to_collaborator(row) for row in df.to_dict('records')]

    @staticmethod
    def _row_to_collaborator(row: Dict) -> Subject:
        employee_code = row.get('codigo_funcionario')
        if employee_code is not None and pd.isna(employee_code):
            employee_code = None
        store_id = row.get('loja_id')
        if store_id is not None and pd.isna(store_id):
            store_id = None

        return Subject(
            kind=SUBJECT_COLLABORATOR,
            id=int(row['id']),
            name=row.get('nome') or '',
            vendor_code=str(employee_code).strip() if employee_code else None,
            store_id=int(store_id) if store_id is not None else None,
            store_vendor_code=store_vendor_code(row.get('loja_numero')),
            role=row.get('tipo'),
            region=row.get('regiao') or None,
        )

    # =========================================================================
    # TARGETS
    # =========================================================================

    async def get_store_targets(self, store_id: int, period_id: int) -> Dict[str, float]:
        """
        Store targets by category.

        'geral' comes from metas_loja.meta_valor_total, the others from
        metas_loja_categorias. Categories without a row are absent.
        """
        query = """
            SELECT 'geral' AS categoria, ml.meta_valor_total AS meta_valor
            FROM metas_loja ml
            WHERE ml.loja_id = :store_id
              AND ml.periodo_meta_id = :period_id
            UNION ALL
            SELECT mlc.categoria, mlc.meta_valor
            FROM metas_loja ml
            JOIN metas_loja_categorias mlc ON mlc.meta_loja_id = ml.id
            WHERE ml.loja_id = :store_id
              AND ml.periodo_meta_id = :period_id
        """
        params = {'store_id': store_id, 'period_id': period_id}
        df = await self._execute_query(query, params, "get_store_targets")
        return self._targets_from_df(df)

    async def get_collaborator_targets(self, user_id: int, period_id: int) -> Dict[str, float]:
        query = """
            SELECT categoria, meta_mensal AS meta_valor
            FROM metas
            WHERE usuario_id = :user_id
              AND periodo_meta_id = :period_id
        """
        params = {'user_id': user_id, 'period_id': period_id}
        df = await self._execute_query(query, params, "get_collaborator_targets")
        return self._targets_from_df(df)

    async def get_team_targets(self, store_id: int, period_id: int) -> Dict[int, Dict[str, float]]:
        """Targets of every collaborator of a store, keyed by user id."""
        query = """
            SELECT m.usuario_id, m.categoria, m.meta_mensal AS meta_valor
            FROM metas m
            JOIN usuarios u ON u.id = m.usuario_id
            WHERE u.loja_id = :store_id
              AND m.periodo_meta_id = :period_id
        """
        params = {'store_id': store_id, 'period_id': period_id}
        df = await self._execute_query(query, params, "get_team_targets")

        targets: Dict[int, Dict[str, float]] = {}
        if df.empty:
            return targets
        for user_id, group in df.groupby('usuario_id'):
            targets[int(user_id)] = self._targets_from_df(group)
        return targets

    @staticmethod
    def _targets_from_df(df: pd.DataFrame) -> Dict[str, float]:
        if df.empty:
            return {}
        values = pd.to_numeric(df['meta_valor'], errors='coerce').fillna(0)
        targets: Dict[str, float] = {}
        for category, value in zip(df['categoria'], values):
            targets[str(category)] = targets.get(str(category), 0.0) + float(value)
        return targets

    # =========================================================================
    # ABSENCES
    # =========================================================================

    async def get_absences(
        self,
        user_ids: Sequence[int],
        start_date: date,
        end_date: date
    ) -> List[AbsenceRecord]:
        """Absence records of the given collaborators within a date range."""
        if not user_ids:
            return []

        query = """
            SELECT folga_id, usuario_id, data_folga, observacao, tipo_ausencia
            FROM folgas
            WHERE usuario_id = ANY(:user_ids)
              AND data_folga BETWEEN :start_date AND :end_date
            ORDER BY data_folga
        """
        params = {
            'user_ids': [int(u) for u in user_ids],
            'start_date': start_date,
            'end_date': end_date,
        }
        df = await self._execute_query(query, params, "get_absences")
        return [AbsenceRecord.from_row(row) for row in df.to_dict('records')]

    # =========================================================================
    # LEDGER SALES
    # =========================================================================

    async def get_ledger_sales(
        self,
        subject: Subject,
        tags: Sequence[str],
        start_date: date,
        end_date: date
    ) -> Dict[str, float]:
        """
        Net ledger sales per category tag for one subject, one round trip.

        Args:
            subject: Store (vendas_loja) or collaborator (vendas)
            tags: Ledger category tags
            start_date: First day (inclusive)
            end_date: Last day (inclusive)

        Returns:
            Dict tag -> total; tags without rows are absent
        """
        if not tags:
            return {}

        if subject.is_store:
            table, owner_column = 'vendas_loja', 'loja_id'
        else:
            table, owner_column = 'vendas', 'usuario_id'

        query = f"""
            SELECT categoria, SUM(valor_venda) AS total
            FROM {table}
            WHERE {owner_column} = :owner_id
              AND categoria = ANY(:tags)
              AND data_venda BETWEEN :start_date AND :end_date
            GROUP BY categoria
        """
        params = {
            'owner_id': subject.id,
            'tags': list(tags),
            'start_date': start_date,
            'end_date': end_date,
        }
        df = await self._execute_query(query, params, f"get_ledger_sales[{table}]")
        if df.empty:
            return {}

        totals = pd.to_numeric(df['total'], errors='coerce').fillna(0)
        return {str(tag): float(total) for tag, total in zip(df['categoria'], totals)}

    # =========================================================================
    # HELPER
    # =========================================================================

    async def _execute_query(
        self,
        query: str,
        params: dict,
        query_name: str = "query"
    ) -> pd.DataFrame:
        """
        Execute SQL query and return DataFrame.

        Errors are logged and re-raised.
        """
        try:
            logger.debug(f"Executing {query_name}")
            df = await execute_query_df(query, params)
            logger.debug(f"{query_name} returned {len(df)} rows")
            return df
        except Exception as e:
            logger.error(f"Error executing {query_name}: {e}")
            raise
