"""
DAO - keyed record access over a datasource.
"""

from typing import Any, Mapping, Optional

from .datasource import Datasource


class Dao:
    """
    Minimal data access object.

    Records are stored under ``"<table>:<id>"`` in the datasource. The
    loader builds DAO subclasses through the current controller's
    ``load_dao()``.
    """

    table: Optional[str] = None
    id_field: str = "id"

    def __init__(self, datasource: Datasource, table: Optional[str] = None, id_field: Optional[str] = None):
        self.datasource = datasource
        self.table = table or self.table or type(self).__name__.lower()
        self.id_field = id_field or self.id_field

    def _key(self, record_id: Any) -> str:
        return f"{self.table}:{record_id}"

    def get(self, record_id: Any) -> Optional[dict]:
        return self.datasource.get(self._key(record_id))

    def set(self, record_id: Any, data: Mapping[str, Any]) -> dict:
        record = {**data, self.id_field: record_id}
        self.datasource.set(self._key(record_id), record)
        return record

    def remove(self, record_id: Any) -> None:
        self.datasource.remove(self._key(record_id))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} table={self.table!r}>"
