"""Local preview of a bulk-upload file before it is sent to the catalog.

The catalog server re-parses the uploaded file; this preview only helps the
operator spot an obviously wrong file.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd
from loguru import logger

SUPPORTED_EXTENSIONS = (".csv", ".xlsx")
RECOMMENDED_COLUMNS = ("title", "mrp", "srp", "description", "category")


@dataclass
class UploadPreview:
    path: Path
    row_count: int
    columns: list[str]
    head: list[dict[str, Any]] = field(default_factory=list)
    missing_columns: list[str] = field(default_factory=list)

    @property
    def looks_valid(self) -> bool:
        return self.row_count > 0 and not self.missing_columns


def preview_upload(file_path: str | Path, rows: int = 5) -> UploadPreview:
    """Read a CSV or Excel file and summarize it.

    Args:
        file_path: File to preview
        rows: Number of leading rows to include

    Returns:
        Row count, column names, first rows and missing recommended columns

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the extension is not supported
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Upload file not found: {file_path}")

    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise ValueError(
            f"Unsupported file type '{suffix}'. Use one of: {', '.join(SUPPORTED_EXTENSIONS)}"
        )

    if suffix == ".csv":
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    else:
        df = pd.read_excel(path, dtype=str).fillna("")

    columns = [str(column).strip() for column in df.columns]
    normalized = {column.lower() for column in columns}
    missing = [column for column in RECOMMENDED_COLUMNS if column not in normalized]

    if missing:
        logger.warning(f"{path.name} is missing recommended columns: {', '.join(missing)}")

    return UploadPreview(
        path=path,
        row_count=len(df),
        columns=columns,
        head=df.head(rows).to_dict(orient="records"),
        missing_columns=missing,
    )
