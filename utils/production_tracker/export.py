# utils/production_tracker/export.py
"""
Formatted Excel Export for Production Tracker

Creates the tracker workbook with:
- Trackers sheet (one row per entry plus a TOTAL row)
- Monthly breakdown
- Report info (generated time, active filters)

and the single-sheet billable (daily or monthly) workbooks.

Uses openpyxl for formatting capabilities.
"""

import logging
from datetime import datetime
from io import BytesIO
from typing import Any, List, Optional, Tuple

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .billable import COUNT_COLUMNS, NUMBER_COLUMNS, billable_totals
from .constants import EXCEL_STYLES, EXPORT_COLUMNS
from .filters import TrackerFilterValues, get_active_filter_summary
from .formatters import Records, format_date_time, to_number, to_optional_number, to_tracker_frame
from .metrics import TrackerMetrics

logger = logging.getLogger(__name__)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

NUMERIC_HEADERS = {'Per Hour Target', 'Production', 'Billable Hours'}


def _text(value: Any) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ''
    return str(value).strip()


def build_file_name(date_from: Any, date_to: Any) -> str:
    """Trackers_<from>_to_<to>.xlsx ("all" for an open bound)."""
    return f"Trackers_{date_from or 'all'}_to_{date_to or 'all'}.xlsx"


def build_billable_file_name(kind: str, month_label: str) -> str:
    """Billable_Daily_JAN2026.xlsx / Billable_Monthly_Last3Months.xlsx"""
    return f"Billable_{kind.title()}_{month_label}.xlsx"


class TrackerExport:
    """
    Excel report generator for tracker entries.

    Usage:
        exporter = TrackerExport(tz='UTC')
        excel_bytes = exporter.create_report(
            trackers_df=filtered_df,
            filters=filter_values,
            include_agent=True
        )

        st.download_button(
            label="Download Excel",
            data=excel_bytes,
            file_name=build_file_name(date_from, date_to),
            mime=XLSX_MIME
        )
    """

    def __init__(self, tz: str = 'UTC'):
        self.tz = tz
        self.wb = None
        self._init_styles()

    def _init_styles(self):
        """Initialize reusable styles."""
        self.header_fill = PatternFill(
            start_color=EXCEL_STYLES['header_fill_color'],
            end_color=EXCEL_STYLES['header_fill_color'],
            fill_type='solid'
        )
        self.total_fill = PatternFill(
            start_color=EXCEL_STYLES['total_fill_color'],
            end_color=EXCEL_STYLES['total_fill_color'],
            fill_type='solid'
        )

        self.header_font = Font(bold=True, color=EXCEL_STYLES['header_font_color'], size=11)
        self.total_font = Font(bold=True, size=11)
        self.title_font = Font(bold=True, size=14)

        thin_border = Side(style='thin', color='000000')
        self.cell_border = Border(left=thin_border, right=thin_border, top=thin_border, bottom=thin_border)

        self.center_align = Alignment(horizontal='center', vertical='center')
        self.number_format = EXCEL_STYLES['number_format']

    # =========================================================================
    # MAIN EXPORT METHOD
    # =========================================================================

    def create_report(
        self,
        trackers_df: Records,
        filters: Optional[TrackerFilterValues] = None,
        include_agent: bool = False
    ) -> BytesIO:
        """
        Create the tracker workbook.

        Args:
            trackers_df: Entries to export (already filtered)
            filters: Filter values shown on the info sheet
            include_agent: Add the Agent column (report view)

        Returns:
            BytesIO containing Excel file

        Raises:
            ValueError: when there is nothing to export
        """
        df = to_tracker_frame(trackers_df)
        if df.empty:
            raise ValueError("No data to export")

        metrics = TrackerMetrics(df, tz=self.tz)

        self.wb = Workbook()
        self._create_trackers_sheet(df, metrics.calculate_totals(), include_agent)
        self._create_monthly_sheet(metrics.prepare_monthly_summary())
        self._create_info_sheet(filters or TrackerFilterValues(), len(df))

        output = BytesIO()
        self.wb.save(output)
        output.seek(0)

        logger.info(f"Excel export created: {len(df)} trackers")
        return output

    def create_billable_report(
        self,
        df: pd.DataFrame,
        columns: List[Tuple[str, str]],
        sheet_name: str,
        show_team: bool = True
    ) -> BytesIO:
        """
        Daily or monthly billable table with a TOTAL row.

        Args:
            df: prepare_daily_billable / prepare_monthly_billable output
            columns: DAILY_COLUMNS or MONTHLY_COLUMNS
            sheet_name: Worksheet title
            show_team: Include the Team column

        Raises:
            ValueError: when there is nothing to export
        """
        if df is None or df.empty:
            raise ValueError("No data to export")

        columns = [(c, h) for c, h in columns if show_team or c != 'team_name']
        totals = billable_totals(df, columns)

        self.wb = Workbook()
        ws = self.wb.active
        ws.title = sheet_name[:31]
        self._write_header(ws, [h for _, h in columns], [max(12, len(h) + 4) for _, h in columns])

        row_idx = 1
        for record in df.to_dict('records'):
            row_idx += 1
            for col_idx, (column, _) in enumerate(columns, 1):
                value = record.get(column)
                if column in NUMBER_COLUMNS:
                    value = to_optional_number(value)
                elif column != 'work_date':
                    value = _text(value)
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = self.cell_border
                if column in NUMBER_COLUMNS - COUNT_COLUMNS:
                    cell.number_format = self.number_format
                elif column == 'work_date':
                    cell.number_format = 'yyyy-mm-dd'

        row_idx += 1
        for col_idx, (column, _) in enumerate(columns, 1):
            value = 'TOTAL' if col_idx == 1 else totals.get(column, '')
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            cell.font = self.total_font
            cell.fill = self.total_fill
            cell.border = self.cell_border
            if column in NUMBER_COLUMNS - COUNT_COLUMNS:
                cell.number_format = self.number_format

        output = BytesIO()
        self.wb.save(output)
        output.seek(0)

        logger.info(f"Billable export created: {len(df)} rows ({sheet_name})")
        return output

    # =========================================================================
    # SHEETS
    # =========================================================================

    def _write_header(self, ws, headers, widths=None):
        for col_idx, header in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col_idx, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.center_align
            cell.border = self.cell_border
            if widths:
                ws.column_dimensions[get_column_letter(col_idx)].width = widths[col_idx - 1]
        ws.freeze_panes = 'A2'

    def _create_trackers_sheet(self, df: pd.DataFrame, totals: dict, include_agent: bool):
        ws = self.wb.active
        ws.title = "Trackers"

        columns = [(h, w) for h, w in EXPORT_COLUMNS if include_agent or h != 'Agent']
        headers = [h for h, _ in columns]
        self._write_header(ws, headers, [w for _, w in columns])

        row_idx = 1
        for record in df.to_dict('records'):
            row_idx += 1
            display_date, display_time = format_date_time(record.get('date_time'), self.tz)
            values = {
                'Date/Time': f"{display_date} {display_time}".strip(),
                'Agent': _text(record.get('user_name')),
                'Project': _text(record.get('project_name')),
                'Task': _text(record.get('task_name')),
                'Per Hour Target': to_number(record.get('tenure_target')),
                'Production': to_number(record.get('production')),
                'Billable Hours': to_number(record.get('billable_hours')),
                'Has File': 'Yes' if _text(record.get('tracker_file')) else 'No',
            }
            for col_idx, header in enumerate(headers, 1):
                cell = ws.cell(row=row_idx, column=col_idx, value=values[header])
                cell.border = self.cell_border
                if header in NUMERIC_HEADERS:
                    cell.number_format = self.number_format

        # TOTAL row
        row_idx += 1
        total_values = {
            'Per Hour Target': round(totals['tenure_target'], 2),
            'Production': round(totals['production'], 2),
            'Billable Hours': round(totals['billable_hours'], 2),
        }
        for col_idx, header in enumerate(headers, 1):
            value = 'TOTAL' if col_idx == 1 else total_values.get(header, '')
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            cell.font = self.total_font
            cell.fill = self.total_fill
            cell.border = self.cell_border
            if header in NUMERIC_HEADERS:
                cell.number_format = self.number_format

    def _create_monthly_sheet(self, monthly_df: pd.DataFrame):
        ws = self.wb.create_sheet("Monthly")
        headers = ['Month', 'Year', 'Per Hour Target', 'Production', 'Billable Hours']
        self._write_header(ws, headers, [14, 8, 16, 14, 16])

        for row_idx, row in enumerate(monthly_df.to_dict('records'), 2):
            values = [
                row['month_name'],
                int(row['year']),
                float(row['tenure_target']),
                float(row['production']),
                float(row['billable_hours']),
            ]
            for col_idx, value in enumerate(values, 1):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = self.cell_border
                if col_idx >= 3:
                    cell.number_format = self.number_format

    def _create_info_sheet(self, filters: TrackerFilterValues, entry_count: int):
        ws = self.wb.create_sheet("Info")

        ws.cell(row=1, column=1, value="Production Tracker Export").font = self.title_font
        info_rows = [
            ("Generated:", datetime.now().strftime('%Y-%m-%d %H:%M')),
            ("Timezone:", self.tz),
            ("Filters:", get_active_filter_summary(filters)),
            ("Entries:", entry_count),
        ]
        for offset, (label, value) in enumerate(info_rows, 3):
            ws.cell(row=offset, column=1, value=label).font = self.total_font
            ws.cell(row=offset, column=2, value=value)

        ws.column_dimensions['A'].width = 14
        ws.column_dimensions['B'].width = 60
