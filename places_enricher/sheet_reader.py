from typing import List
import pandas as pd

from places_enricher.config import ADDRESS_COLUMN, NAME_COLUMN
from places_enricher.models import InputRecord


def _cell_text(row: pd.Series, column: str) -> str:
    # Missing columns and NaN cells both become ""
    if column not in row.index:
        return ""
    val = row[column]
    if pd.isna(val):
        return ""
    return str(val).strip()


def load_records_from_excel(file_path: str, sheet_number: int) -> List[InputRecord]:
    """
    Load one worksheet of the locations workbook as InputRecord objects.

    Args:
        file_path (str): Path to the .xlsx workbook.
        sheet_number (int): Position of the worksheet in the workbook. Existing
            progress files were written against this positional addressing, so
            sheet 1 is the workbook's second tab.

    Returns:
        List[InputRecord]: Rows in sheet order; row i has index i in the progress file.
    """
    sheet_names = pd.ExcelFile(file_path, engine="openpyxl").sheet_names
    if not 0 <= sheet_number < len(sheet_names):
        raise ValueError(
            f"Sheet {sheet_number} does not exist in {file_path} (tabs: {', '.join(sheet_names)})"
        )
    df = pd.read_excel(file_path, sheet_name=sheet_names[sheet_number], engine="openpyxl")
    return [
        InputRecord(
            business_name=_cell_text(row, NAME_COLUMN),
            address=_cell_text(row, ADDRESS_COLUMN),
        )
        for _, row in df.iterrows()
    ]
