"""Excel XLSX export for scraped products and category listings."""

from pathlib import Path
from typing import Iterable, Protocol

import pandas as pd
from loguru import logger

MAX_COLUMN_WIDTH = 50


class ExcelRow(Protocol):
    def to_row(self) -> dict: ...


def export_scraped_to_excel(
    records: Iterable[ExcelRow],
    output_path: str = "output/scraped_products.xlsx",
    sheet_name: str = "Products",
) -> Path:
    """Export scraped records to an XLSX file.

    Works for both ``ScrapedProduct`` and ``ScrapedCategoryProduct`` since
    each renders itself with ``to_row``.

    Args:
        records: Records to export
        output_path: Path to output XLSX file
        sheet_name: Worksheet name

    Returns:
        Path to created XLSX file

    Raises:
        ValueError: If there is nothing to export
    """
    rows = [record.to_row() for record in records]
    if not rows:
        raise ValueError("Cannot export empty product list")

    df = pd.DataFrame(rows)

    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(output_file, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        _fit_column_widths(writer.sheets[sheet_name])

    logger.info(f"Exported {len(rows)} products to {output_file}")
    return output_file


def _fit_column_widths(worksheet) -> None:
    for column in worksheet.columns:
        longest = max(
            (len(str(cell.value)) for cell in column if cell.value is not None),
            default=0,
        )
        letter = column[0].column_letter
        worksheet.column_dimensions[letter].width = min(longest + 2, MAX_COLUMN_WIDTH)
