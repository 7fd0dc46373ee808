# =============================================================================
# core/report.py - Report assembly and export
# =============================================================================

import logging
from typing import Any, Dict, Iterable, List

from core.models import Record
from core.timestamps import format_timestamp
from utils.csv_utils import CSVHandler


REPORT_FIELDNAMES = ["Name", "Creation", "LastLogon", "PwdLastSet", "DistinguishedName"]


class ReportAssembler:
    """Merges category results, sorts by name and writes the CSV report"""

    def __init__(self):
        self.records: List[Record] = []
        self._seen = set()
        self.logger = logging.getLogger(self.__class__.__name__)

    def add(self, records: Iterable[Record]) -> int:
        """Add records, skipping ones already present; returns how many were added"""
        added = 0
        for record in records:
            key = record.distinguished_name or record.name
            if key is not None and key in self._seen:
                self.logger.debug(f"Skipping duplicate entry {key}")
                continue
            if key is not None:
                self._seen.add(key)
            self.records.append(record)
            added += 1
        return added

    def sorted_records(self) -> List[Record]:
        """Records in ascending codepoint order of Name (stable)"""
        return sorted(self.records, key=lambda record: record.name or "")

    def to_rows(self) -> List[Dict[str, Any]]:
        """Convert records to dictionaries for CSV output"""
        return [self.record_to_dict(record) for record in self.sorted_records()]

    @staticmethod
    def record_to_dict(record: Record) -> Dict[str, Any]:
        return {
            "Name": record.name or "",
            "Creation": format_timestamp(record.creation),
            "LastLogon": format_timestamp(record.last_logon),
            "PwdLastSet": format_timestamp(record.pwd_last_set),
            "DistinguishedName": record.distinguished_name or "",
        }

    def write(self, output_path: str) -> int:
        """Write the sorted report; returns the number of rows written"""
        rows = self.to_rows()
        CSVHandler.write_csv(rows, output_path, REPORT_FIELDNAMES)
        return len(rows)
