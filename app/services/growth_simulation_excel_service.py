"""
Growth Simulation Excel Export Service.
Generates Excel reports for a batch of measurement snapshots, each scored
through the growth simulator.
"""
from io import BytesIO
from datetime import datetime
from typing import Dict, Any, List, Tuple
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter
from openpyxl.chart import BarChart, Reference

from app.services.growth_simulation_rules import (
    PARAMETER_KEYS,
    PARAMETER_DISPLAY_NAMES,
    PARAMETER_UNITS,
    round_half_away,
)
from app.services.growth_simulator import InputParameters, SimulationResult, growth_simulator

GROWTH_GREEN = "10B981"
GROWTH_DARK = "059669"
HEADER_BG = "D1FAE5"
ALERT_BG = "FEE2E2"


class GrowthSimulationExcelService:
    """Service for generating measurement history Excel reports."""

    def __init__(self):
        self.header_fill = PatternFill(start_color=GROWTH_DARK, end_color=GROWTH_DARK, fill_type="solid")
        self.header_font = Font(bold=True, color="FFFFFF", size=11)
        self.title_font = Font(bold=True, size=16, color=GROWTH_DARK)
        self.subtitle_font = Font(bold=True, size=12, color=GROWTH_DARK)
        self.light_fill = PatternFill(start_color=HEADER_BG, end_color=HEADER_BG, fill_type="solid")
        self.alert_fill = PatternFill(start_color=ALERT_BG, end_color=ALERT_BG, fill_type="solid")
        self.border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

    def _apply_header_style(self, ws, row_num: int, max_col: int):
        """Apply header styling to a row."""
        for col in range(1, max_col + 1):
            cell = ws.cell(row=row_num, column=col)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
            cell.border = self.border

    def _auto_adjust_columns(self, ws):
        """Auto-adjust column widths."""
        for column in ws.columns:
            max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
            column_letter = get_column_letter(column[0].column)
            ws.column_dimensions[column_letter].width = min(max(max_length + 2, 12), 60)

    def simulate_records(self, records: List[Dict[str, Any]]) -> List[Tuple[Dict[str, Any], SimulationResult]]:
        """
        Score every record through the growth simulator.

        Raises:
            UnknownCropError: a record names a crop without a profile.
        """
        scored = []
        for record in records:
            params = InputParameters.from_dict(record)
            scored.append((record, growth_simulator.simulate(params)))
        return scored

    def generate_measurements_excel(
        self,
        records: List[Dict[str, Any]],
        user_name: str = "Grower"
    ) -> BytesIO:
        """
        Generate Excel report for a batch of measurement snapshots.

        Args:
            records: Dicts with crop_id, the 9 readings, timestamp and an
                optional id
            user_name: Name printed in the summary header

        Returns:
            BytesIO with Excel file content
        """
        scored = self.simulate_records(records)

        wb = Workbook()
        if wb.active:
            wb.remove(wb.active)

        self._create_summary_sheet(wb, scored, user_name)
        self._create_measurements_sheet(wb, scored)
        self._create_issues_sheet(wb, scored)

        buffer = BytesIO()
        wb.save(buffer)
        buffer.seek(0)
        return buffer

    def _create_summary_sheet(self, wb, scored: List[Tuple[Dict, SimulationResult]], user_name: str):
        """Create the summary sheet."""
        ws = wb.create_sheet("Summary")
        row = 1

        ws.cell(row=row, column=1, value="HYDROPONIC GROWTH SIMULATION REPORT").font = self.title_font
        ws.merge_cells(f'A{row}:D{row}')
        row += 1

        ws.cell(row=row, column=1, value=f"Generated: {datetime.now().strftime('%d/%m/%Y %H:%M')}").font = Font(italic=True)
        row += 1
        ws.cell(row=row, column=1, value=f"Prepared for: {user_name}").font = Font(italic=True)
        row += 2

        total = len(scored)
        viable = sum(1 for _, result in scored if result.is_viable)
        avg_yield = sum(result.yield_percentage for _, result in scored) / total if total else 0

        ws.cell(row=row, column=1, value="OVERVIEW").font = self.subtitle_font
        row += 1
        for label, value in [
            ("Measurements", total),
            ("Viable", viable),
            ("Non-viable", total - viable),
            ("Average yield (%)", round_half_away(avg_yield * 10) / 10),
        ]:
            ws.cell(row=row, column=1, value=label).fill = self.light_fill
            ws.cell(row=row, column=2, value=value)
            for col in (1, 2):
                ws.cell(row=row, column=col).border = self.border
            row += 1

        self._auto_adjust_columns(ws)
        return ws

    def _create_measurements_sheet(self, wb, scored: List[Tuple[Dict, SimulationResult]]):
        """Create the per-measurement sheet with a yield chart."""
        ws = wb.create_sheet("Measurements")

        headers = ["#", "ID", "Timestamp", "Crop"]
        for key in PARAMETER_KEYS:
            unit = PARAMETER_UNITS[key]
            headers.append(f"{PARAMETER_DISPLAY_NAMES[key]} ({unit})" if unit else PARAMETER_DISPLAY_NAMES[key])
        headers += ["Viable", "Yield (%)", "Expected (g)", "Yield (kg/m2)", "Growth (days)"]

        for col, header in enumerate(headers, start=1):
            ws.cell(row=1, column=col, value=header)
        self._apply_header_style(ws, 1, len(headers))

        for index, (record, result) in enumerate(scored, start=1):
            row = index + 1
            timestamp = record.get("timestamp")
            if isinstance(timestamp, datetime):
                timestamp = timestamp.strftime('%d/%m/%Y %H:%M')
            crop_id = record.get("crop_id")
            values = [index, record.get("id"), timestamp, getattr(crop_id, "value", crop_id)]
            values += [record[key] for key in PARAMETER_KEYS]
            values += [
                "Yes" if result.is_viable else "No",
                result.yield_percentage,
                result.expected_grams,
                result.yield_per_square_meter,
                result.growth_time,
            ]
            for col, value in enumerate(values, start=1):
                cell = ws.cell(row=row, column=col, value=value)
                cell.border = self.border
                if not result.is_viable:
                    cell.fill = self.alert_fill

        if scored:
            yield_col = headers.index("Yield (%)") + 1
            chart = BarChart()
            chart.title = "Predicted yield per measurement"
            chart.y_axis.title = "Yield (%)"
            chart.x_axis.title = "Measurement"
            data = Reference(ws, min_col=yield_col, min_row=1, max_row=len(scored) + 1)
            categories = Reference(ws, min_col=1, min_row=2, max_row=len(scored) + 1)
            chart.add_data(data, titles_from_data=True)
            chart.set_categories(categories)
            ws.add_chart(chart, f"A{len(scored) + 4}")

        self._auto_adjust_columns(ws)
        return ws

    def _create_issues_sheet(self, wb, scored: List[Tuple[Dict, SimulationResult]]):
        """Create the issues and recommendations sheet."""
        ws = wb.create_sheet("Issues")
        headers = ["#", "Kind", "Text"]
        for col, header in enumerate(headers, start=1):
            ws.cell(row=1, column=col, value=header)
        self._apply_header_style(ws, 1, len(headers))

        row = 2
        for index, (_, result) in enumerate(scored, start=1):
            entries = [("issue", text) for text in result.issues]
            entries += [("recommendation", text) for text in result.recommendations]
            for kind, text in entries:
                ws.cell(row=row, column=1, value=index)
                ws.cell(row=row, column=2, value=kind)
                ws.cell(row=row, column=3, value=text).alignment = Alignment(wrap_text=True)
                row += 1

        self._auto_adjust_columns(ws)
        return ws


growth_simulation_excel_service = GrowthSimulationExcelService()
