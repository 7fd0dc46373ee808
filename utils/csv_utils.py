# =============================================================================
# utils/csv_utils.py - CSV utilities
# =============================================================================

import csv
from typing import List, Dict, Any, Optional
import logging


class CSVHandler:
    """Utilities for writing CSV reports"""

    @staticmethod
    def write_csv(data: List[Dict[str, Any]], output_path: str,
                  fieldnames: Optional[List[str]] = None) -> None:
        """Write data to CSV file; a header-only file is written when data is empty"""
        logger = logging.getLogger(__name__)

        if fieldnames is None:
            if not data:
                raise ValueError("fieldnames are required when there is no data to write")
            fieldnames = list(data[0].keys())

        if not data:
            logger.warning(f"No records to write, {output_path} will only contain the header")

        try:
            with open(output_path, 'w', newline='', encoding='utf-8') as file:
                writer = csv.DictWriter(file, fieldnames=fieldnames)
                writer.writeheader()
                writer.writerows(data)

            logger.info(f"Successfully wrote {len(data)} records to {output_path}")

        except Exception as e:
            logger.error(f"Error writing CSV: {e}")
            raise
