# =============================================================================
# core/base_processor.py - Abstract base dataset processor
# =============================================================================

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional
import logging

from core.errors import IngestionError
from utils.csv_utils import CSVHandler


class BaseDatasetProcessor(ABC):
    """
    Abstract base class for uploaded dataset processors.

    Subclasses declare the column names they read. The header is validated once
    per file; rows are then decoded into typed records without dropping any, so
    row-level filtering stays with the graph and index builders.
    """

    REQUIRED_COLUMNS: List[str] = []
    OPTIONAL_COLUMNS: List[str] = []
    DATASET_NAME = "dataset"

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.headers: List[str] = []

    @abstractmethod
    def decode_row(self, row: Dict[str, Any]) -> Any:
        """Convert a validated CSV row into a record"""
        pass

    def load(self, file_path: str, sheet_name: Optional[str] = None) -> List[Any]:
        """Read a CSV or Excel file and decode its rows"""
        self.logger.info(f"Loading {self.DATASET_NAME} from {file_path}")
        rows, headers = CSVHandler.read_table(file_path, sheet_name)
        return self.decode(rows, headers)

    def decode(self, rows: List[Dict[str, Any]], headers: Optional[List[str]] = None) -> List[Any]:
        """Validate the header and decode every row"""
        if headers is None:
            headers = list(rows[0].keys()) if rows else []
        self.validate_headers(headers)
        self.headers = headers

        records = [self.decode_row(row) for row in rows]
        self.logger.info(f"Decoded {len(records)} {self.DATASET_NAME} rows")
        return records

    def validate_headers(self, headers: List[str]) -> None:
        """Fail fast when a required column is missing"""
        missing_columns = self.get_missing_columns(headers)
        if missing_columns:
            self.logger.error(
                f"Missing required columns in {self.DATASET_NAME}: {missing_columns} "
                f"(found: {headers})"
            )
            raise IngestionError(
                f"{self.DATASET_NAME} is missing required columns: {', '.join(missing_columns)}"
            )

    def get_missing_columns(self, headers: List[str]) -> List[str]:
        present = set(headers)
        return [column for column in self.REQUIRED_COLUMNS if column not in present]

    @staticmethod
    def field(row: Dict[str, Any], column: str) -> str:
        """Trimmed string value of a column, empty when absent"""
        value = row.get(column)
        if value is None:
            return ''
        return str(value).strip()
