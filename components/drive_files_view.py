"""
Record page component listing the Drive files of one CRM record.

The hosting page sets record_id; every change re-runs the query and keeps
the last outcome as a QueryResult holding either rows or an error message.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

COLUMNS: List[Dict[str, Any]] = [
    {"label": "File Name", "field_name": "file_name", "type": "text"},
    {
        "label": "Google Drive Link",
        "field_name": "drive_link",
        "type": "url",
        "type_attributes": {"label": "Open in Drive", "target": "_blank"},
    },
    {"label": "Uploaded On", "field_name": "uploaded_on", "type": "date"},
]


@dataclass(frozen=True)
class QueryResult:
    data: Optional[Sequence[Any]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def error_message(exc: Exception) -> str:
    # HTTPException carries the user-facing text in detail
    detail = getattr(exc, "detail", None)
    if isinstance(detail, str) and detail:
        return detail
    return str(exc) or type(exc).__name__


class DriveFilesView:
    def __init__(self, query: Callable[[str], Sequence[Any]], record_id: Optional[str] = None):
        self._query = query
        self._record_id: Optional[str] = None
        self._result: Optional[QueryResult] = None
        self.columns = COLUMNS
        if record_id is not None:
            self.record_id = record_id

    @property
    def record_id(self) -> Optional[str]:
        return self._record_id

    @record_id.setter
    def record_id(self, value: Optional[str]) -> None:
        if value == self._record_id and self._result is not None:
            return
        self._record_id = value
        self.refresh()

    @property
    def result(self) -> Optional[QueryResult]:
        return self._result

    def refresh(self) -> QueryResult:
        if not self._record_id:
            self._result = QueryResult(data=[])
            return self._result
        try:
            self._result = QueryResult(data=list(self._query(self._record_id)))
        except Exception as exc:
            self._result = QueryResult(error=error_message(exc))
        return self._result

    def context(self) -> Dict[str, Any]:
        """Template context for drive_files_table.html."""
        return {
            "record_id": self._record_id,
            "columns": self.columns,
            "result": self._result,
        }
