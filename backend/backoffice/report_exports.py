"""Utilities to export ledger reports as Excel workbooks or PDFs."""

from datetime import date
from decimal import Decimal
from io import BytesIO
from typing import Mapping, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle


__all__ = [
    "generate_dealer_credit_workbook",
    "generate_dealer_credit_pdf",
    "generate_statement_workbook",
    "generate_statement_pdf",
]


HEADER_FILL = PatternFill(start_color="305496", end_color="305496", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
TOTAL_FILL = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")
CURRENCY_NUMBER_FORMAT = "#,##0.00"
HEADER_COLOR = colors.HexColor("#305496")
GRID_COLOR = colors.HexColor("#CCCCCC")


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _auto_size_columns(worksheet) -> None:
    """Adjust column widths to fit their content nicely."""

    for column_cells in worksheet.columns:
        column_letter = get_column_letter(column_cells[0].column)
        max_length = 0
        for cell in column_cells:
            if cell.value is None:
                continue
            max_length = max(max_length, len(str(cell.value)))
        worksheet.column_dimensions[column_letter].width = min(max_length + 2, 45)


def _format_currency(value) -> str:
    return f"{_to_decimal(value):,.2f}"


def _format_date(value) -> str:
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    return str(value or "")


def _append_header(worksheet, headers: Sequence[str]) -> None:
    worksheet.append(list(headers))
    for cell in worksheet[worksheet.max_row]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center")


def _format_money_cells(row, columns: Sequence[int]) -> None:
    for index in columns:
        row[index].number_format = CURRENCY_NUMBER_FORMAT
        row[index].alignment = Alignment(horizontal="right")


def _workbook_bytes(workbook) -> bytes:
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _table_style(money_columns: Sequence[int], has_total_row: bool = False) -> TableStyle:
    commands = [
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("GRID", (0, 0), (-1, -1), 0.25, GRID_COLOR),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 4),
        ("TOPPADDING", (0, 0), (-1, 0), 4),
        ("TOPPADDING", (0, 1), (-1, -1), 2),
        ("BOTTOMPADDING", (0, 1), (-1, -1), 2),
    ]
    for column in money_columns:
        commands.append(("ALIGN", (column, 1), (column, -1), "RIGHT"))
    if has_total_row:
        commands.append(("BACKGROUND", (0, -1), (-1, -1), colors.HexColor("#F2F2F2")))
        commands.append(("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"))
    return TableStyle(commands)


def _pdf_document(buffer, title: str, pagesize=A4) -> SimpleDocTemplate:
    return SimpleDocTemplate(
        buffer,
        pagesize=pagesize,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=20 * mm,
        bottomMargin=20 * mm,
        title=title,
    )


def generate_dealer_credit_workbook(summaries: Sequence[Mapping], market: Mapping) -> bytes:
    """Return an Excel workbook listing every dealer's credit position."""

    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "Dealer Credits"

    worksheet["A1"] = "Dealer Credit Report"
    worksheet["A1"].font = Font(size=14, bold=True)
    worksheet.append([])

    _append_header(worksheet, ["Dealer", "Total Credit", "Total Paid", "Remaining", "Last Payment"])
    if summaries:
        for summary in summaries:
            worksheet.append(
                [
                    summary.get("party_name") or "",
                    float(_to_decimal(summary.get("total_credit"))),
                    float(_to_decimal(summary.get("total_paid"))),
                    float(_to_decimal(summary.get("remaining"))),
                    _format_date(summary.get("last_payment_date")),
                ]
            )
            _format_money_cells(worksheet[worksheet.max_row], (1, 2, 3))
    else:
        worksheet.append(["No dealer credit recorded.", "", "", "", ""])

    worksheet.append([])
    worksheet.append(["Total Market Credit", float(_to_decimal(market.get("total_market_credit")))])
    _format_money_cells(worksheet[worksheet.max_row], (1,))
    worksheet.append(["Total Outstanding", float(_to_decimal(market.get("total_outstanding")))])
    _format_money_cells(worksheet[worksheet.max_row], (1,))
    worksheet.append(["Dealers", int(market.get("party_count") or 0)])
    for row in worksheet.iter_rows(min_row=worksheet.max_row - 2, max_row=worksheet.max_row):
        row[0].font = Font(bold=True)
        for cell in row:
            cell.fill = TOTAL_FILL

    _auto_size_columns(worksheet)
    return _workbook_bytes(workbook)


def generate_dealer_credit_pdf(summaries: Sequence[Mapping], market: Mapping) -> bytes:
    """Return a PDF document listing every dealer's credit position."""

    buffer = BytesIO()
    document = _pdf_document(buffer, "Dealer Credit Report")
    styles = getSampleStyleSheet()

    story = [Paragraph("Dealer Credit Report", styles["Title"]), Spacer(1, 6 * mm)]

    data: list[list[str]] = [["Dealer", "Total Credit", "Total Paid", "Remaining", "Last Payment"]]
    if summaries:
        for summary in summaries:
            data.append(
                [
                    summary.get("party_name") or "",
                    _format_currency(summary.get("total_credit")),
                    _format_currency(summary.get("total_paid")),
                    _format_currency(summary.get("remaining")),
                    _format_date(summary.get("last_payment_date")),
                ]
            )
    else:
        data.append(["No dealer credit recorded.", "", "", "", ""])
    data.append(
        [
            "Total market credit",
            "",
            "",
            _format_currency(market.get("total_market_credit")),
            "",
        ]
    )

    table = Table(data, colWidths=[55 * mm, 30 * mm, 30 * mm, 30 * mm, 30 * mm], repeatRows=1)
    table.setStyle(_table_style((1, 2, 3), has_total_row=True))
    story.append(table)
    story.append(Spacer(1, 4 * mm))
    story.append(
        Paragraph(
            f"Outstanding across {int(market.get('party_count') or 0)} dealers: "
            f"{_format_currency(market.get('total_outstanding'))}",
            styles["Normal"],
        )
    )

    document.build(story)
    return buffer.getvalue()


def generate_statement_workbook(dealer_name: str, statement: Mapping) -> bytes:
    """Return an Excel workbook with a dealer's running-balance statement."""

    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "Statement"

    worksheet["A1"] = f"Ledger Statement - {dealer_name}"
    worksheet["A1"].font = Font(size=14, bold=True)
    worksheet.append([])

    _append_header(worksheet, ["Date", "Description", "Debit", "Credit", "Balance"])
    for entry in statement.get("entries", []):
        worksheet.append(
            [
                _format_date(entry.get("date")),
                entry.get("description") or "",
                float(_to_decimal(entry.get("debit"))),
                float(_to_decimal(entry.get("credit"))),
                float(_to_decimal(entry.get("balance"))),
            ]
        )
        _format_money_cells(worksheet[worksheet.max_row], (2, 3, 4))

    worksheet.append(
        [
            "",
            "Closing Balance",
            float(_to_decimal(statement.get("total_debit"))),
            float(_to_decimal(statement.get("total_credit"))),
            float(_to_decimal(statement.get("closing_balance"))),
        ]
    )
    total_row = worksheet[worksheet.max_row]
    _format_money_cells(total_row, (2, 3, 4))
    for cell in total_row:
        cell.font = Font(bold=True)
        cell.fill = TOTAL_FILL

    _auto_size_columns(worksheet)
    return _workbook_bytes(workbook)


def generate_statement_pdf(dealer_name: str, statement: Mapping) -> bytes:
    """Return a PDF rendering of a dealer's running-balance statement."""

    buffer = BytesIO()
    document = _pdf_document(buffer, f"Ledger Statement - {dealer_name}", pagesize=landscape(A4))
    styles = getSampleStyleSheet()

    story = [Paragraph(f"Ledger Statement - {dealer_name}", styles["Title"]), Spacer(1, 6 * mm)]

    data: list[list] = [["Date", "Description", "Debit", "Credit", "Balance"]]
    for entry in statement.get("entries", []):
        data.append(
            [
                _format_date(entry.get("date")),
                Paragraph(entry.get("description") or "", styles["BodyText"]),
                _format_currency(entry.get("debit")),
                _format_currency(entry.get("credit")),
                _format_currency(entry.get("balance")),
            ]
        )
    data.append(
        [
            "",
            "Closing balance",
            _format_currency(statement.get("total_debit")),
            _format_currency(statement.get("total_credit")),
            _format_currency(statement.get("closing_balance")),
        ]
    )

    table = Table(data, colWidths=[28 * mm, 120 * mm, 35 * mm, 35 * mm, 35 * mm], repeatRows=1)
    table.setStyle(_table_style((2, 3, 4), has_total_row=True))
    story.append(table)

    document.build(story)
    return buffer.getvalue()
