# daybook/outputs/csv_output.py

import os
import csv
import logging
from decimal import Decimal
from daybook.outputs.base import BaseOutput
from daybook.core.models import day_sort_key

logger = logging.getLogger(__name__)


class CSVOutput(BaseOutput):
    """
    Writes all transactions to a single CSV file named Daybook<Year>.csv,
    sorted by date (oldest to latest). The year is taken from the oldest
    transaction.
    """
    def __init__(self, config):
        self.config     = config
        self.output_dir = config.get('output_dir', 'data')
        os.makedirs(self.output_dir, exist_ok=True)

    def write(self, transactions):
        if not transactions:
            logger.info("No transactions to write.")
            return None

        sorted_txs = sorted(transactions, key=lambda tx: (day_sort_key(tx.date), tx.id))
        year = day_sort_key(sorted_txs[0].date).year

        filename = f"Daybook{year}.csv"
        out_path = os.path.join(self.output_dir, filename)

        with open(out_path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(['date', 'description', 'transaction_type', 'amount'])
            for tx in sorted_txs:
                writer.writerow([
                    tx.date,
                    str(tx.description).strip(),
                    tx.transaction_type,
                    f"{Decimal(str(tx.amount)):.2f}",
                ])

        logger.info("Written %d transactions to %s", len(sorted_txs), out_path)
        return out_path
