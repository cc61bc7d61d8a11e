"""
Table identity mapping

Push payloads reference tables by their persistent numeric id; everything a
viewer shows uses the join code. TableIdMapper is a pure function of the
current table collection and must be rebuilt whenever that collection changes.
"""
from typing import Dict, Iterable, Union

from .records import LocalTable


class TableIdMapper:
    """numeric table id -> join code, falling back to the raw id as a string"""

    def __init__(self, mapping: Dict[int, str]):
        self._by_db_id = dict(mapping)

    @classmethod
    def from_tables(cls, tables: Iterable[LocalTable]) -> "TableIdMapper":
        return cls({t.db_id: t.id for t in tables})

    def __len__(self) -> int:
        return len(self._by_db_id)

    def knows(self, db_id: Union[int, str]) -> bool:
        key = self._numeric(db_id)
        return key is not None and key in self._by_db_id

    def __call__(self, db_id: Union[int, str]) -> str:
        """
        Translate a numeric (or numeric-string) id to its join code.

        Unknown or non-numeric ids come back as str(db_id) unchanged; this never raises.
        """
        key = self._numeric(db_id)
        if key is None:
            return str(db_id)
        return self._by_db_id.get(key, str(db_id))

    @staticmethod
    def _numeric(db_id):
        if isinstance(db_id, bool):
            return None
        if isinstance(db_id, int):
            return db_id
        try:
            return int(str(db_id).strip())
        except ValueError:
            return None
