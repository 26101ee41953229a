# utils/goal_pacing/export.py
"""
Formatted Excel Export for Goal Pacing

Creates an Excel report with:
- Cover sheet (store, period, generated at)
- Store category cards
- Individual category cards
- Team progress table

Uses openpyxl for formatting capabilities.
"""

import logging
from datetime import datetime
from io import BytesIO
from typing import Dict, List, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter

from .constants import EXCEL_STYLES, STATUS_LABELS
from .metrics import MetricData

logger = logging.getLogger(__name__)

# (header, MetricData attribute, kind)
METRIC_COLUMNS = [
    ("Categoria", "title", "text"),
    ("Meta", "target", "currency"),
    ("Vendido no período", "period_sales", "currency"),
    ("Vendido hoje", "today_sales", "currency"),
    ("Meta diária", "daily_target", "currency"),
    ("Falta hoje", "missing_today", "currency"),
    ("Dias restantes", "remaining_days", "int"),
    ("Progresso", "overall_progress_percent", "percent"),
    ("Tempo decorrido", "time_elapsed_percent", "percent"),
    ("Status", "status", "status"),
]

TEAM_COLUMNS = [
    ("Colaborador", "name", "text"),
    ("Função", "role", "text"),
    ("Categoria", "category", "text"),
    ("Meta", "target", "currency"),
    ("Vendido", "period_sales", "currency"),
    ("Progresso", "progress_percent", "percent"),
    ("Tempo decorrido", "time_elapsed_percent", "percent"),
]


class GoalPacingExport:
    """
    Excel report generator for goal pacing.

    Usage:
        exporter = GoalPacingExport()
        excel_bytes = exporter.create_report(
            info={'store': 'Loja 07', 'period': '09/2025 - 10/2025'},
            store_metrics=store_metrics,
            individual_metrics=individual_metrics,
            team_df=team_df
        )

        st.download_button(
            label="Baixar relatório",
            data=excel_bytes,
            file_name="metas_diarias.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
    """

    def __init__(self):
        self.wb = None
        self._init_styles()

    def _init_styles(self):
        self.header_fill = PatternFill(
            start_color=EXCEL_STYLES['header_fill_color'],
            end_color=EXCEL_STYLES['header_fill_color'],
            fill_type='solid'
        )
        self.header_font = Font(bold=True, color=EXCEL_STYLES['header_font_color'], size=11)
        self.title_font = Font(bold=True, size=16)

        thin = Side(style='thin', color='000000')
        self.cell_border = Border(left=thin, right=thin, top=thin, bottom=thin)
        self.center_align = Alignment(horizontal='center', vertical='center')

        self.currency_format = EXCEL_STYLES['currency_format']
        self.percent_format = EXCEL_STYLES['percent_format']

    # =========================================================================
    # MAIN EXPORT METHOD
    # =========================================================================

    def create_report(
        self,
        info: Dict,
        store_metrics: List[MetricData] = None,
        individual_metrics: List[MetricData] = None,
        team_df: Optional[pd.DataFrame] = None
    ) -> BytesIO:
        """
        Create the Excel report.

        Args:
            info: Header values ('store', 'collaborator', 'period', 'today')
            store_metrics: Store category cards
            individual_metrics: Individual category cards
            team_df: Team progress table (orchestrator columns)

        Returns:
            BytesIO containing the xlsx file
        """
        self.wb = Workbook()

        self._create_cover_sheet(info)
        if store_metrics:
            self._create_metrics_sheet("Loja", store_metrics)
        if individual_metrics:
            self._create_metrics_sheet("Individual", individual_metrics)
        if team_df is not None and not team_df.empty:
            self._create_team_sheet(team_df)

        output = BytesIO()
        self.wb.save(output)
        output.seek(0)

        logger.info("Excel report created successfully")
        return output

    # =========================================================================
    # SHEETS
    # =========================================================================

    def _create_cover_sheet(self, info: Dict):
        ws = self.wb.active
        ws.title = "Resumo"

        ws.cell(row=1, column=1, value="Metas Diárias")
        ws.cell(row=1, column=1).font = self.title_font
        ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=3)

        rows = [
            ("Loja:", info.get('store', '')),
            ("Colaborador:", info.get('collaborator', '')),
            ("Período:", info.get('period', '')),
            ("Data de referência:", str(info.get('today', ''))),
            ("Gerado em:", datetime.now().strftime('%d/%m/%Y %H:%M')),
        ]
        for offset, (label, value) in enumerate(rows, start=3):
            ws.cell(row=offset, column=1, value=label)
            ws.cell(row=offset, column=2, value=value)

        ws.column_dimensions['A'].width = 22
        ws.column_dimensions['B'].width = 32

    def _create_metrics_sheet(self, title: str, metrics: List[MetricData]):
        ws = self.wb.create_sheet(title)
        self._write_header(ws, [header for header, _, _ in METRIC_COLUMNS])

        for row_idx, metric in enumerate(metrics, start=2):
            for col_idx, (_, attr, kind) in enumerate(METRIC_COLUMNS, start=1):
                self._write_value(ws, row_idx, col_idx, getattr(metric, attr), kind)

        self._autosize(ws, len(METRIC_COLUMNS))

    def _create_team_sheet(self, team_df: pd.DataFrame):
        ws = self.wb.create_sheet("Equipe")
        self._write_header(ws, [header for header, _, _ in TEAM_COLUMNS])

        for row_idx, record in enumerate(team_df.to_dict('records'), start=2):
            for col_idx, (_, key, kind) in enumerate(TEAM_COLUMNS, start=1):
                self._write_value(ws, row_idx, col_idx, record.get(key), kind)

        self._autosize(ws, len(TEAM_COLUMNS))

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _write_header(self, ws, headers: List[str]):
        for col_idx, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col_idx, value=header)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = self.center_align
            cell.border = self.cell_border

    def _write_value(self, ws, row: int, col: int, value, kind: str):
        if kind == 'percent':
            # stored as 0-100, Excel percent format expects a fraction
            value = (value or 0) / 100
        elif kind == 'status':
            value = STATUS_LABELS.get(value, ('', value))[1]

        cell = ws.cell(row=row, column=col, value=value)
        cell.border = self.cell_border

        if kind == 'currency':
            cell.number_format = self.currency_format
        elif kind == 'percent':
            cell.number_format = self.percent_format

    @staticmethod
    def _autosize(ws, n_columns: int):
        for col_idx in range(1, n_columns + 1):
            letter = get_column_letter(col_idx)
            width = max(
                (len(str(cell.value)) for cell in ws[letter] if cell.value is not None),
                default=10
            )
            ws.column_dimensions[letter].width = min(max(width + 2, 12), 40)
