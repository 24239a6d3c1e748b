from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Optional, Union

from openpyxl import load_workbook

from social_bot.logging_config import get_logger

logger = get_logger("product_catalog")

Price = Union[int, float, Decimal]


@dataclass(frozen=True)
class Product:
    type: str
    size: str
    price: Price


def _key(product_type: str, size: str) -> tuple[str, str]:
    return product_type.strip().lower(), size.strip().lower()


class ProductCatalog:
    """Read-only price table keyed by (type, size), case-insensitive."""

    def __init__(self, products: Iterable[Product] = ()):
        self._products: dict[tuple[str, str], Product] = {}
        for product in products:
            # First row wins when the sheet has duplicates.
            self._products.setdefault(_key(product.type, product.size), product)

    def find(self, product_type: str, size: str) -> Optional[Product]:
        return self._products.get(_key(product_type, size))

    def __len__(self) -> int:
        return len(self._products)


def _coerce_price(value) -> Optional[Price]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, Decimal)):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        number = Decimal(text)
    except ArithmeticError:
        return None
    return int(number) if number == number.to_integral_value() else number


def load_product_catalog(path: Union[str, Path]) -> ProductCatalog:
    """
    Load products from the first sheet of an .xlsx workbook.

    The header row must name `product_type`, `size` and `price` columns (any
    order, case-insensitive). Rows missing any of them are skipped. A missing
    file yields an empty catalog so the bot still answers via AI.
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Product sheet not found: {path}")
        return ProductCatalog()

    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if not header:
            return ProductCatalog()

        columns = {str(name).strip().lower(): index for index, name in enumerate(header) if name is not None}
        missing = {"product_type", "size", "price"} - columns.keys()
        if missing:
            raise ValueError(f"Product sheet {path} is missing columns: {sorted(missing)}")

        products = []
        for row in rows:
            product_type = row[columns["product_type"]] if len(row) > columns["product_type"] else None
            size = row[columns["size"]] if len(row) > columns["size"] else None
            price = _coerce_price(row[columns["price"]]) if len(row) > columns["price"] else None
            if product_type is None or size is None or price is None:
                continue
            products.append(Product(type=str(product_type).strip(), size=str(size).strip(), price=price))
    finally:
        workbook.close()

    catalog = ProductCatalog(products)
    logger.info(f"Loaded {len(catalog)} products from {path}")
    return catalog
