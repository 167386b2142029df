# =============================================================================
# utils/csv_utils.py - CSV and Excel table utilities
# =============================================================================

import csv
import logging
import zipfile
from pathlib import Path
from typing import List, Dict, Any, Optional, Tuple

import pandas as pd

from core.errors import IngestionError

CSV_EXTENSIONS = {'.csv'}
EXCEL_EXTENSIONS = {'.xlsx'}


class CSVHandler:
    """Utilities for reading tabular uploads and writing CSV files"""

    @staticmethod
    def read_table(file_path: str, sheet_name: Optional[str] = None) -> Tuple[List[Dict[str, str]], List[str]]:
        """Read a CSV or Excel file based on its extension"""
        extension = Path(file_path).suffix.lower()
        if extension in CSV_EXTENSIONS:
            return CSVHandler.read_csv(file_path)
        if extension in EXCEL_EXTENSIONS:
            return CSVHandler.read_excel(file_path, sheet_name)
        raise IngestionError(f"Unsupported file type '{extension}' for {Path(file_path).name}")

    @staticmethod
    def read_csv(file_path: str, encoding: str = 'utf-8-sig',
                 delimiter: str = ',') -> Tuple[List[Dict[str, str]], List[str]]:
        """Read CSV file and return trimmed rows and header names"""
        logger = logging.getLogger(__name__)

        try:
            with open(file_path, 'r', newline='', encoding=encoding) as file:
                reader = csv.DictReader(file, delimiter=delimiter)
                if reader.fieldnames is None:
                    raise IngestionError(f"{Path(file_path).name} is empty")

                raw_headers = list(reader.fieldnames)
                headers = [CSVHandler.clean_header(header) for header in raw_headers]
                logger.info(f"CSV Headers: {headers[:10]}...")

                data = []
                for row in reader:
                    data.append({
                        header: (row.get(raw_header) or '').strip()
                        for raw_header, header in zip(raw_headers, headers)
                    })

            logger.info(f"Successfully read {len(data)} records from {file_path}")
            return data, headers

        except FileNotFoundError:
            logger.error(f"Input file {file_path} not found")
            raise
        except (UnicodeDecodeError, csv.Error) as e:
            logger.error(f"Error reading CSV: {e}")
            raise IngestionError(f"Could not parse {Path(file_path).name}: {e}") from e

    @staticmethod
    def read_excel(file_path: str, sheet_name: Optional[str] = None) -> Tuple[List[Dict[str, str]], List[str]]:
        """Read the first (or named) sheet of an Excel file as string rows"""
        logger = logging.getLogger(__name__)

        try:
            frame = pd.read_excel(file_path, sheet_name=sheet_name or 0, dtype=str)
        except FileNotFoundError:
            logger.error(f"Input file {file_path} not found")
            raise
        except (ValueError, KeyError, zipfile.BadZipFile) as e:
            logger.error(f"Error reading Excel file: {e}")
            raise IngestionError(f"Could not parse {Path(file_path).name}: {e}") from e

        frame.columns = [CSVHandler.clean_header(str(column)) for column in frame.columns]
        frame = frame.fillna('').apply(lambda column: column.str.strip())
        frame = frame[(frame != '').any(axis=1)]

        headers = list(frame.columns)
        data = frame.to_dict(orient='records')
        logger.info(f"Successfully read {len(data)} records from {file_path}")
        return data, headers

    @staticmethod
    def clean_header(header: str) -> str:
        """Strip whitespace and stray BOM characters from a header name"""
        return (header or '').strip().lstrip('\ufeff\ufffe').strip()

    @staticmethod
    def write_csv(data: List[Dict[str, Any]], output_path: str,
                  fieldnames: Optional[List[str]] = None) -> None:
        """Write data to CSV file"""
        logger = logging.getLogger(__name__)

        if fieldnames is None:
            if not data:
                logger.warning("No data to write")
                return
            fieldnames = list(data[0].keys())

        try:
            with open(output_path, 'w', newline='', encoding='utf-8') as file:
                writer = csv.DictWriter(file, fieldnames=fieldnames)
                writer.writeheader()
                writer.writerows(data)

            logger.info(f"Successfully wrote {len(data)} records to {output_path}")

        except OSError as e:
            logger.error(f"Error writing CSV: {e}")
            raise
