# app/services/export_service.py
from __future__ import annotations

from datetime import datetime
from io import BytesIO
from zoneinfo import ZoneInfo

from openpyxl import Workbook
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.services.report_service import Report
from app.utils.formatters import file_date, money, vi_date, vnd_number
from app.utils.settings import REPORT_TIMEZONE

REPORT_TITLE = "BÁO CÁO DOANH THU VÀ ĐƠN HÀNG"

STATS_HEADER = ["Chỉ số", "Giá trị"]
REVENUE_HEADER = ["Ngày", "Doanh Thu (đ)"]
PRODUCTS_HEADER = ["Sản Phẩm", "Số Lượng Bán", "Doanh Thu (đ)"]
PRODUCTS_PDF_HEADER = ["Sản Phẩm", "Số Lượng", "Doanh Thu (đ)"]
STATUS_HEADER = ["Trạng Thái", "Số Lượng"]


def report_filename(ext: str, now: datetime | None = None) -> str:
    now = now or datetime.now(ZoneInfo(REPORT_TIMEZONE))
    return f"bao-cao-doanh-thu-{file_date(now)}.{ext}"


def stats_rows(report: Report) -> list[list]:
    s = report.stats
    return [
        ["Tổng Doanh Thu", money(s["total_revenue"])],
        ["Tổng Đơn Hàng", s["total_orders"]],
        ["Đơn Đang Chờ", s["pending_orders"]],
        ["Đơn Hoàn Thành", s["completed_orders"]],
    ]


def export_xlsx(report: Report) -> bytes:
    """One sheet per aggregate, raw numbers except the formatted revenue card."""
    wb = Workbook()

    sheet = wb.active
    sheet.title = "Thống Kê"
    sheet.append(STATS_HEADER)
    for row in stats_rows(report):
        sheet.append(row)

    sheet = wb.create_sheet("Doanh Thu Theo Ngày")
    sheet.append(REVENUE_HEADER)
    for item in report.revenue_by_day:
        sheet.append([item["date"], float(item["revenue"])])

    sheet = wb.create_sheet("Sản Phẩm Bán Chạy")
    sheet.append(PRODUCTS_HEADER)
    for item in report.best_sellers:
        sheet.append([item["name"], item["total_sold"], float(item["revenue"])])

    sheet = wb.create_sheet("Trạng Thái Đơn Hàng")
    sheet.append(STATUS_HEADER)
    for item in report.orders_by_status:
        sheet.append([item["status"], item["count"]])

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def _table(header: list, body: list[list]) -> Table:
    table = Table([header, *body], hAlign="LEFT")
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#8b5cf6")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
            ]
        )
    )
    return table


def export_pdf(report: Report, now: datetime | None = None) -> bytes:
    now = now or datetime.now(ZoneInfo(REPORT_TIMEZONE))
    styles = getSampleStyleSheet()

    buf = BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, title=REPORT_TITLE)

    story = [
        Paragraph(REPORT_TITLE, styles["Title"]),
        Paragraph(f"Ngày xuất: {vi_date(now)}", styles["Normal"]),
        Spacer(1, 12),
        Paragraph("Thống Kê Tổng Quan", styles["Heading2"]),
        _table(STATS_HEADER, [[label, str(value)] for label, value in stats_rows(report)]),
        Spacer(1, 12),
        Paragraph("Doanh Thu 7 Ngày Gần Nhất", styles["Heading2"]),
        _table(
            REVENUE_HEADER,
            [[i["date"], vnd_number(i["revenue"])] for i in report.revenue_by_day],
        ),
        Spacer(1, 12),
        Paragraph("Top 5 Sản Phẩm Bán Chạy", styles["Heading2"]),
        _table(
            PRODUCTS_PDF_HEADER,
            [
                [i["name"], str(i["total_sold"]), vnd_number(i["revenue"])]
                for i in report.best_sellers
            ],
        ),
        Spacer(1, 12),
        Paragraph("Trạng Thái Đơn Hàng", styles["Heading2"]),
        _table(STATUS_HEADER, [[i["status"], str(i["count"])] for i in report.orders_by_status]),
    ]

    doc.build(story)
    return buf.getvalue()
