"""
Flat-file transaction ledger (CSV) and period reports
"""
import calendar
import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Tuple, Union

import pandas as pd

from cardroid.models import LedgerEntry, LedgerReport, ReportPeriod, TransactionType
from cardroid.utils.dates import DATE_FORMAT, format_date

logger = logging.getLogger(__name__)

LEDGER_COLUMNS = ["fecha", "tipo", "descripcion", "monto", "moneda"]
EXPORT_FILENAME = "transacciones.csv"


def period_bounds(period: ReportPeriod, reference: date) -> Tuple[date, date]:
    """
    Inclusive first and last day of the period containing ``reference``

    diario is the day itself, semanal the Monday-Sunday week and mensual the
    calendar month.
    """
    period = ReportPeriod(period)
    if period == ReportPeriod.DAILY:
        return reference, reference
    if period == ReportPeriod.WEEKLY:
        start = reference - timedelta(days=reference.weekday())
        return start, start + timedelta(days=6)
    last_day = calendar.monthrange(reference.year, reference.month)[1]
    return reference.replace(day=1), reference.replace(day=last_day)


class TransactionLedger:
    """CSV ledger with rows ``fecha,tipo,descripcion,monto,moneda``."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def append(self, entry: LedgerEntry) -> None:
        row = pd.DataFrame(
            [[format_date(entry.entry_date), entry.type, entry.description, entry.amount, entry.currency]],
            columns=LEDGER_COLUMNS,
        )
        write_header = not self.exists()
        if write_header:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        row.to_csv(self.path, mode="a", header=write_header, index=False)
        logger.info(f"Transacción registrada: {entry.type} {entry.amount:.2f} ({format_date(entry.entry_date)})")

    def load(self) -> pd.DataFrame:
        """
        Ledger rows with ``fecha`` parsed to dates and ``monto`` to floats

        Rows with an unreadable date are dropped.
        """
        if not self.exists():
            return pd.DataFrame(columns=LEDGER_COLUMNS)

        df = pd.read_csv(self.path, dtype={"descripcion": str, "tipo": str, "moneda": str})
        if df.empty:
            return pd.DataFrame(columns=LEDGER_COLUMNS)

        df["fecha"] = pd.to_datetime(df["fecha"], format=DATE_FORMAT, errors="coerce")
        invalid = df["fecha"].isna().sum()
        if invalid:
            logger.warning(f"Ignorando {invalid} filas del libro con fecha inválida")
            df = df[df["fecha"].notna()].copy()
        df["fecha"] = df["fecha"].dt.date
        df["monto"] = pd.to_numeric(df["monto"], errors="coerce").fillna(0.0)
        return df

    def report(self, period: ReportPeriod, reference: date) -> LedgerReport:
        """Totals for the period that contains ``reference``."""
        start, end = period_bounds(period, reference)
        df = self.load()
        if not df.empty:
            df = df[(df["fecha"] >= start) & (df["fecha"] <= end)]

        sales = float(df.loc[df["tipo"] == TransactionType.SALE.value, "monto"].sum()) if not df.empty else 0.0
        expenses = float(df.loc[df["tipo"] == TransactionType.EXPENSE.value, "monto"].sum()) if not df.empty else 0.0

        return LedgerReport(
            period=ReportPeriod(period),
            start=start,
            end=end,
            sales_total=round(sales, 2),
            expenses_total=round(expenses, 2),
            balance=round(sales - expenses, 2),
            transaction_count=len(df),
        )
