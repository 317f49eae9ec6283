# daybook/outputs/excel_output.py

"""Excel output module backed by XlsxWriter.

One worksheet per month holds that month's transactions, an ``AllData``
worksheet consolidates every transaction, and a ``Summary`` worksheet lists
income, expense and balance for each month plus a grand total.
"""

from __future__ import annotations

import logging
import os
import xlsxwriter

from daybook.core.models import day_sort_key
from daybook.outputs.base import BaseOutput

logger = logging.getLogger(__name__)

INCOME = "income"
EXPENSE = "expense"


class ExcelOutput(BaseOutput):
    """Generate a local Excel workbook grouped by month."""

    MONTH_FMT = "%B %Y"
    ALL_DATA = "AllData"
    SUMMARY = "Summary"
    HEADERS = ["date", "description", "transaction_type", "amount"]

    def __init__(self, config: dict):
        self.config = config
        self.output_dir = config.get("output_dir", "data")
        os.makedirs(self.output_dir, exist_ok=True)

    def write(self, transactions):
        if not transactions:
            logger.info("No transactions to write.")
            return None

        ordered = sorted(transactions, key=lambda tx: (day_sort_key(tx.date), tx.id))
        months = self._group_by_month(ordered)
        year = day_sort_key(ordered[0].date).year
        out_path = os.path.join(self.output_dir, f"Daybook{year}.xlsx")

        workbook = xlsxwriter.Workbook(out_path)
        amount_fmt = workbook.add_format({"num_format": "#,##0.00"})

        all_rows = []
        for sheet_name, txs in months.items():
            ws = workbook.add_worksheet(sheet_name)
            ws.freeze_panes(1, 0)
            ws.write_row(0, 0, self.HEADERS)
            for row_idx, tx in enumerate(txs, start=1):
                ws.write_row(row_idx, 0, [tx.date, tx.description, tx.transaction_type])
                ws.write_number(row_idx, 3, float(tx.amount), amount_fmt)
                all_rows.append([sheet_name, tx.date, tx.description,
                                 tx.transaction_type, float(tx.amount)])
            ws.set_column(3, 3, None, amount_fmt)
            ws.add_table(0, 0, len(txs), 3, {
                "columns": [{"header": h} for h in self.HEADERS]
            })

        # AllData worksheet consolidating all transactions
        all_ws = workbook.add_worksheet(self.ALL_DATA)
        all_ws.freeze_panes(1, 0)
        all_headers = ["month"] + self.HEADERS
        all_ws.write_row(0, 0, all_headers)
        for idx, row in enumerate(all_rows, start=1):
            all_ws.write_row(idx, 0, row[:4])
            all_ws.write_number(idx, 4, row[4], amount_fmt)
        all_ws.set_column(4, 4, None, amount_fmt)
        all_ws.add_table(0, 0, len(all_rows), 4, {
            "columns": [{"header": h} for h in all_headers]
        })

        summary_ws = workbook.add_worksheet(self.SUMMARY)
        summary_ws.freeze_panes(1, 0)
        summary_ws.set_column(1, 3, None, amount_fmt)
        summary_rows = self._build_summary(months)
        summary_ws.write_row(0, 0, summary_rows[0])
        for idx, row in enumerate(summary_rows[1:], start=1):
            summary_ws.write(idx, 0, row[0])
            for col, value in enumerate(row[1:], start=1):
                summary_ws.write_number(idx, col, value, amount_fmt)

        workbook.close()
        logger.info("Written Excel workbook %s", out_path)
        return out_path

    def _group_by_month(self, ordered):
        months = {}
        for tx in ordered:
            sheet_name = day_sort_key(tx.date).strftime(self.MONTH_FMT)
            months.setdefault(sheet_name, []).append(tx)
        return months

    def _build_summary(self, months):
        rows = [["Month", "Income", "Expense", "Balance"]]
        total_income = 0.0
        total_expense = 0.0
        for sheet_name, txs in months.items():
            income = sum(float(tx.amount) for tx in txs if tx.transaction_type == INCOME)
            expense = sum(float(tx.amount) for tx in txs if tx.transaction_type == EXPENSE)
            rows.append([sheet_name, income, expense, income - expense])
            total_income += income
            total_expense += expense
        rows.append(["Grand Total", total_income, total_expense, total_income - total_expense])
        return rows
