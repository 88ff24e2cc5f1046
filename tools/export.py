"""CSV export of transactions using the project's current field schema."""

import csv
import re
from datetime import date
from pathlib import Path
from typing import Iterable, List, Optional

from logger import get_logger
from models.category import Category
from models.settings import ProjectSettings
from models.transaction import Transaction
from tools.views import category_name, category_names

logger = get_logger()

MISSING_VALUE = "-"


def export_columns(settings: ProjectSettings) -> List[str]:
    return ["Date", "Description", "Category", *settings.field_names(), "Currency", "Amount"]


def export_rows(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    settings: ProjectSettings,
) -> List[List[str]]:
    """Build CSV rows, header first.

    Custom data keys that are not current fields are left out.
    """
    names = category_names(categories)
    field_names = settings.field_names()

    rows = [export_columns(settings)]
    for transaction in transactions:
        custom_values = []
        for name in field_names:
            value = transaction.custom_data.get(name)
            custom_values.append(MISSING_VALUE if value in (None, "") else str(value))

        rows.append(
            [
                transaction.date.isoformat(),
                transaction.description or "",
                category_name(transaction, names),
                *custom_values,
                transaction.currency_code,
                f"{transaction.amount:.2f}",
            ]
        )
    return rows


def export_filename(project_name: str, today: Optional[date] = None) -> str:
    """Name the export file {project}_transactions_{iso-date}.csv."""
    today = today or date.today()
    safe_name = re.sub(r'[\\/:*?"<>|]+', "_", project_name).strip() or "project"
    return f"{safe_name}_transactions_{today.isoformat()}.csv"


def write_csv(
    export_dir: Path,
    project_name: str,
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    settings: ProjectSettings,
    today: Optional[date] = None,
) -> Path:
    """Write a BOM-prefixed UTF-8 CSV with every cell quoted.

    Args:
        export_dir: Directory to write to (created if needed).
        project_name: Used in the file name.
        transactions: Rows to export, in order.
        categories: Categories used to resolve names.
        settings: Project settings; its custom fields define the columns.
        today: Date used in the file name.

    Returns:
        Path of the written file.
    """
    export_dir.mkdir(parents=True, exist_ok=True)
    path = export_dir / export_filename(project_name, today)
    rows = export_rows(transactions, categories, settings)

    with open(path, "w", encoding="utf-8-sig", newline="") as f:
        writer = csv.writer(f, quoting=csv.QUOTE_ALL)
        writer.writerows(rows)

    logger.info(f"Exported {len(rows) - 1} transaction(s) to {path}")
    return path
