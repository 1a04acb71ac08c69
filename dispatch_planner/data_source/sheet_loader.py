from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from dispatch_planner.records import OrderLine, StockRecord


class DataSourceError(ValueError):
    """Raised when stock/order tables cannot be read or mapped to records."""


@dataclass
class SheetColumns:
    """
    Header names of the stock and orders sheets.

    Headers are compared after strip().upper(), so "Quantity" and " QUANTITY"
    both match "QUANTITY".
    """

    # Stock sheet
    product: str = "PRODUCT"
    stock_size: str = "SIZE"
    quantity: str = "QUANTITY"
    stock_cbm: str = "CBM"
    tag: str = "MOTOR BAG"

    # Orders sheet
    serial_number: str = "SR NO"
    date: str = "DATE"
    sales_person: str = "SALES PERSON"
    customer: str = "CUSTOMER"
    location: str = "LOCATION"
    order_size: str = "SIZE"
    ordered_quantity: str = "QNTY"
    order_cbm: str = "CBM"
    notes: str = "NOTES"


def _norm(name) -> str:
    return str(name).strip().upper()


def _finite(values: pd.Series) -> pd.Series:
    return values.notna() & np.isfinite(values.astype(float))


def _whole(values: pd.Series) -> pd.Series:
    # Counts must be finite integers; "inf" or "2.7" make the row invalid
    return _finite(values) & (values.astype(float) % 1 == 0)


class SheetLoader:
    """
    Turn stock / pending-orders tables (CSV, Excel, or DataFrames) into
    typed StockRecord / OrderLine lists for the allocator.

    Row handling:
      - fully blank rows are dropped
      - text cells are trimmed
      - numbers and dates are coerced; a row whose required values do not
        parse (or whose counts are not whole numbers) is skipped with a
        warning, or raises DataSourceError in strict mode
    """

    def __init__(self, columns: Optional[SheetColumns] = None, strict: bool = False):
        self.columns = columns or SheetColumns()
        self.strict = bool(strict)
        self.log = logging.getLogger(self.__class__.__name__)

    # ------------------------------------------------------------------
    # File IO
    # ------------------------------------------------------------------
    def read_table(self, path: Path) -> pd.DataFrame:
        path = Path(path)
        if not path.exists():
            raise DataSourceError(f"Data file not found: {path}")

        suffix = path.suffix.lower()
        # Everything as text; coercion happens per column below
        if suffix == ".csv":
            df = pd.read_csv(path, dtype=str, keep_default_na=False)
        elif suffix in (".xlsx", ".xls"):
            df = pd.read_excel(path, dtype=str, keep_default_na=False)
        else:
            raise DataSourceError(f"Unsupported data file type: {path.suffix}")

        self.log.debug("Read %d rows from %s", len(df), path)
        return df

    def load_stock(self, path: Path) -> List[StockRecord]:
        return self.stock_from_frame(self.read_table(path), source=str(path))

    def load_orders(self, path: Path) -> List[OrderLine]:
        return self.orders_from_frame(self.read_table(path), source=str(path))

    # ------------------------------------------------------------------
    # Frame -> records
    # ------------------------------------------------------------------
    def stock_from_frame(self, df: pd.DataFrame, source: str = "stock") -> List[StockRecord]:
        c = self.columns
        df = self._prepare(df, required=[c.stock_size, c.quantity, c.stock_cbm], source=source)

        size = self._text(df, c.stock_size)
        quantity = pd.to_numeric(df[_norm(c.quantity)], errors="coerce")
        cbm = pd.to_numeric(df[_norm(c.stock_cbm)], errors="coerce")
        product = self._text(df, c.product)
        tag = self._text(df, c.tag).replace("", "No")

        valid = (size != "") & _whole(quantity) & _finite(cbm)
        self._handle_invalid(df, valid, source)

        records = [
            StockRecord(
                size=size[i],
                quantity=int(quantity[i]),
                cbm=float(cbm[i]),
                product=product[i],
                tag=tag[i],
            )
            for i in df.index[valid]
        ]
        self.log.info("Parsed %d stock records from %s", len(records), source)
        return records

    def orders_from_frame(self, df: pd.DataFrame, source: str = "orders") -> List[OrderLine]:
        c = self.columns
        df = self._prepare(
            df,
            required=[c.serial_number, c.date, c.customer, c.order_size, c.ordered_quantity],
            source=source,
        )

        serial = pd.to_numeric(df[_norm(c.serial_number)], errors="coerce")
        dates = pd.to_datetime(df[_norm(c.date)], errors="coerce")
        customer = self._text(df, c.customer)
        size = self._text(df, c.order_size)
        qty = pd.to_numeric(df[_norm(c.ordered_quantity)], errors="coerce")
        cbm = pd.to_numeric(self._text(df, c.order_cbm), errors="coerce").fillna(0.0)
        sales_person = self._text(df, c.sales_person)
        location = self._text(df, c.location)
        notes = self._text(df, c.notes)

        valid = (
            _whole(serial)
            & dates.notna()
            & (customer != "")
            & (size != "")
            & _whole(qty)
            & _finite(cbm)
        )
        self._handle_invalid(df, valid, source)

        records = [
            OrderLine(
                serial_number=int(serial[i]),
                date=dates[i].date(),
                customer=customer[i],
                size=size[i],
                ordered_quantity=int(qty[i]),
                cbm=float(cbm[i]),
                sales_person=sales_person[i],
                location=location[i],
                notes=notes[i],
            )
            for i in df.index[valid]
        ]
        self.log.info("Parsed %d order lines from %s", len(records), source)
        return records

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _prepare(self, df: pd.DataFrame, required: List[str], source: str) -> pd.DataFrame:
        df = df.reset_index(drop=True)
        df.columns = [_norm(col) for col in df.columns]

        missing = [name for name in (_norm(r) for r in required) if name not in df.columns]
        if missing:
            raise DataSourceError(f"{source}: missing required column(s): {missing}")

        # Sheet row numbers: header is row 1
        df.index = range(2, len(df) + 2)

        # Drop rows where every cell is blank (trailing spreadsheet rows)
        as_text = df.astype(str).apply(lambda col: col.str.strip())
        blank = as_text.isin(["", "nan", "None", "NaT"]).all(axis=1)
        return df[~blank]

    def _text(self, df: pd.DataFrame, column: str) -> pd.Series:
        name = _norm(column)
        if name not in df.columns:
            return pd.Series("", index=df.index, dtype=object)
        return df[name].fillna("").astype(str).str.strip()

    def _handle_invalid(self, df: pd.DataFrame, valid: pd.Series, source: str) -> None:
        bad_rows = [int(i) for i in df.index[~valid]]
        if not bad_rows:
            return
        if self.strict:
            raise DataSourceError(
                f"{source}: rows with missing or unparseable required values: {bad_rows}"
            )
        self.log.warning(
            "%s: skipping %d row(s) with missing or unparseable required values: %s",
            source,
            len(bad_rows),
            bad_rows[:20],
        )


def load_records(
    stock_path: Path,
    orders_path: Path,
    loader: Optional[SheetLoader] = None,
) -> Dict[str, list]:
    """Load both sheets; returns {"stock": [...], "orders": [...]}."""
    loader = loader or SheetLoader()
    return {
        "stock": loader.load_stock(stock_path),
        "orders": loader.load_orders(orders_path),
    }
