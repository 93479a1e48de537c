import csv
import io
import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, List, Sequence

import pandas as pd
from openpyxl.styles import Font
from sqlalchemy.orm import Session

from models.Expense import EXPENSE_CATEGORY_LABELS, Expense
from models.Income import Income
from models.Material import Material
from models.Product import Product
from services.report_services import ReportService
from utils import ID_MONTHS_LONG, format_number_id, get_jkt_now

logger = logging.getLogger(__name__)

CSV_BOM = "\ufeff"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def write_csv(rows: Iterable[Sequence]) -> str:
    """
    Semicolon separated, BOM prefixed so spreadsheet apps pick up UTF-8.
    Values holding ';', '"' or a newline get quoted with inner quotes doubled.
    """
    buffer = io.StringIO()
    buffer.write(CSV_BOM)
    writer = csv.writer(buffer, delimiter=";", quotechar='"', quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return buffer.getvalue()


def _amount_or_dash(value: Decimal) -> str:
    return format_number_id(value) if value > 0 else "-"


def _long_date(value: datetime) -> str:
    return f"{value.day} {ID_MONTHS_LONG[value.month - 1]} {value.year}"


class ExportService:
    def __init__(self, db: Session, owner_id: int, now: Callable[[], datetime] = get_jkt_now):
        self.db = db
        self.owner_id = owner_id
        self.now = now
        self.reports = ReportService(db, owner_id, now=now)

    def filename(self, prefix: str, extension: str = "csv") -> str:
        return f"{prefix}-{self.now():%Y-%m-%d}.{extension}"

    # owner scoped datasets

    def _incomes(self) -> List[Income]:
        return (
            self.db.query(Income)
            .filter(Income.owner_id == self.owner_id)
            .order_by(Income.date.desc(), Income.id.desc())
            .all()
        )

    def _expenses(self) -> List[Expense]:
        return (
            self.db.query(Expense)
            .filter(Expense.owner_id == self.owner_id)
            .order_by(Expense.date.desc(), Expense.id.desc())
            .all()
        )

    def _products(self) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.owner_id == self.owner_id)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .all()
        )

    def _materials(self) -> List[Material]:
        return (
            self.db.query(Material)
            .filter(Material.owner_id == self.owner_id)
            .order_by(Material.created_at.desc(), Material.id.desc())
            .all()
        )

    # csv

    def monthly_csv(self) -> str:
        points = self.reports.monthly_data()
        rows = [["Bulan", "Pemasukan (Rp)", "Pengeluaran (Rp)", "Profit (Rp)"]]
        for point in points:
            rows.append([
                point.month,
                format_number_id(point.income),
                format_number_id(point.expense),
                format_number_id(point.profit),
            ])
        rows.append([])
        rows.append([
            "TOTAL",
            format_number_id(sum((p.income for p in points), Decimal("0"))),
            format_number_id(sum((p.expense for p in points), Decimal("0"))),
            format_number_id(sum((p.profit for p in points), Decimal("0"))),
        ])
        return write_csv(rows)

    def products_csv(self) -> str:
        products = self.reports.top_products()
        rows = [["No", "Produk", "Penjualan (Rp)", "Quantity", "Profit (Rp)"]]
        for number, product in enumerate(products, start=1):
            rows.append([
                number,
                product.name,
                format_number_id(product.revenue),
                product.quantity,
                format_number_id(product.profit),
            ])
        rows.append([])
        rows.append([
            "",
            "TOTAL",
            format_number_id(sum((p.revenue for p in products), Decimal("0"))),
            sum(p.quantity for p in products),
            format_number_id(sum((p.profit for p in products), Decimal("0"))),
        ])
        return write_csv(rows)

    def cashflow_csv(self) -> str:
        cash_flow = self.reports.cash_flow()
        rows = [["Kategori", "Pemasukan (Rp)", "Pengeluaran (Rp)", "Netto (Rp)"]]
        for row in cash_flow.rows:
            rows.append([
                row.category,
                _amount_or_dash(row.income),
                _amount_or_dash(row.expense),
                format_number_id(row.net),
            ])
        rows.append([])
        rows.append([
            "TOTAL",
            format_number_id(cash_flow.total_income),
            format_number_id(cash_flow.total_expense),
            format_number_id(cash_flow.net_cash_flow),
        ])
        return write_csv(rows)

    def all_csv(self) -> str:
        income_total = self.reports.income_total()
        expense_total = self.reports.expense_total()

        rows: List[list] = [
            ["LAPORAN KEUANGAN"],
            [f"Tanggal Export: {_long_date(self.now())}"],
            [],
            ["RINGKASAN"],
            ["Keterangan", "Jumlah (Rp)"],
            ["Total Pemasukan", format_number_id(income_total)],
            ["Total Pengeluaran", format_number_id(expense_total)],
            ["Total Profit", format_number_id(income_total - expense_total)],
            [],
            [],
            ["DATA PEMASUKAN"],
            ["No", "Tanggal", "Produk", "Quantity", "Harga Satuan (Rp)", "Total (Rp)", "Customer"],
        ]
        for number, income in enumerate(self._incomes(), start=1):
            rows.append([
                number,
                f"{income.date:%d/%m/%Y}",
                income.product_rel.name if income.product_rel else "-",
                income.quantity,
                format_number_id(income.unit_price),
                format_number_id(income.total_amount),
                income.customer_name or "-",
            ])

        rows += [[], [], ["DATA PENGELUARAN"], ["No", "Tanggal", "Deskripsi", "Kategori", "Jumlah (Rp)"]]
        for number, expense in enumerate(self._expenses(), start=1):
            rows.append([
                number,
                f"{expense.date:%d/%m/%Y}",
                expense.description,
                EXPENSE_CATEGORY_LABELS[expense.category],
                format_number_id(expense.amount),
            ])

        rows += [[], [], ["DATA PRODUK"], ["No", "Nama Produk", "Harga Jual (Rp)", "HPP (Rp)", "Margin (Rp)"]]
        for number, product in enumerate(self._products(), start=1):
            rows.append([
                number,
                product.name,
                format_number_id(product.selling_price),
                format_number_id(product.hpp),
                format_number_id(product.margin),
            ])

        rows += [[], [], ["DATA BAHAN BAKU"], ["No", "Nama Bahan", "Satuan", "Harga per Unit (Rp)", "Stok", "Nilai Stok (Rp)"]]
        for number, material in enumerate(self._materials(), start=1):
            rows.append([
                number,
                material.name,
                material.unit.value,
                format_number_id(material.price_per_unit),
                format_number_id(material.stock),
                format_number_id(Decimal(material.price_per_unit) * Decimal(material.stock)),
            ])

        return write_csv(rows)

    # xlsx

    def all_xlsx(self) -> io.BytesIO:
        """Same datasets as all_csv, one sheet each, numbers kept numeric."""
        income_total = self.reports.income_total()
        expense_total = self.reports.expense_total()

        sheets = {
            "Ringkasan": pd.DataFrame([
                {"Keterangan": "Total Pemasukan", "Jumlah (Rp)": float(income_total)},
                {"Keterangan": "Total Pengeluaran", "Jumlah (Rp)": float(expense_total)},
                {"Keterangan": "Total Profit", "Jumlah (Rp)": float(income_total - expense_total)},
            ]),
            "Pemasukan": pd.DataFrame(
                [{
                    "Tanggal": income.date.strftime("%d/%m/%Y"),
                    "Produk": income.product_rel.name if income.product_rel else "-",
                    "Quantity": income.quantity,
                    "Harga Satuan (Rp)": float(income.unit_price),
                    "Total (Rp)": float(income.total_amount),
                    "Customer": income.customer_name or "-",
                } for income in self._incomes()],
                columns=["Tanggal", "Produk", "Quantity", "Harga Satuan (Rp)", "Total (Rp)", "Customer"],
            ),
            "Pengeluaran": pd.DataFrame(
                [{
                    "Tanggal": expense.date.strftime("%d/%m/%Y"),
                    "Deskripsi": expense.description,
                    "Kategori": EXPENSE_CATEGORY_LABELS[expense.category],
                    "Jumlah (Rp)": float(expense.amount),
                } for expense in self._expenses()],
                columns=["Tanggal", "Deskripsi", "Kategori", "Jumlah (Rp)"],
            ),
            "Produk": pd.DataFrame(
                [{
                    "Nama Produk": product.name,
                    "Harga Jual (Rp)": float(product.selling_price),
                    "HPP (Rp)": float(product.hpp),
                    "Margin (Rp)": float(product.margin),
                } for product in self._products()],
                columns=["Nama Produk", "Harga Jual (Rp)", "HPP (Rp)", "Margin (Rp)"],
            ),
            "Bahan Baku": pd.DataFrame(
                [{
                    "Nama Bahan": material.name,
                    "Satuan": material.unit.value,
                    "Harga per Unit (Rp)": float(material.price_per_unit),
                    "Stok": float(material.stock),
                    "Nilai Stok (Rp)": float(Decimal(material.price_per_unit) * Decimal(material.stock)),
                } for material in self._materials()],
                columns=["Nama Bahan", "Satuan", "Harga per Unit (Rp)", "Stok", "Nilai Stok (Rp)"],
            ),
        }

        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            for sheet_name, frame in sheets.items():
                frame.to_excel(writer, index=False, sheet_name=sheet_name)
                worksheet = writer.sheets[sheet_name]

                for cell in worksheet[1]:
                    cell.font = Font(bold=True)

                for column in worksheet.columns:
                    max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
                    worksheet.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)

        output.seek(0)
        logger.info("XLSX export built for owner %s", self.owner_id)
        return output
