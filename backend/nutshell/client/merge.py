"""
Incremental merge and filter views

Every function here is pure: it returns a new list and never mutates its
input, so a collection can be shared between views without aliasing bugs.
Collections hold at most one item per id after any sequence of calls.
"""
from typing import Any, Callable, Iterable, List, Optional, Sequence, TypeVar

from .records import LocalInsight, LocalTable, LocalTranscript

T = TypeVar("T")


def _id(item) -> str:
    return item.id


def upsert_head(
    collection: Sequence[T],
    item: T,
    limit: Optional[int] = None,
    key: Callable[[T], Any] = _id,
) -> List[T]:
    """
    Activity-stream upsert: drop any element with the same id, put `item` first.

    When `limit` is set the oldest (tail) elements beyond it are evicted.
    """
    item_key = key(item)
    merged = [item] + [x for x in collection if key(x) != item_key]
    if limit is not None and limit >= 0:
        merged = merged[:limit]
    return merged


def upsert_in_place(collection: Sequence[T], item: T, key: Callable[[T], Any] = _id) -> List[T]:
    """Replace the element with the same id where it stands, or append."""
    item_key = key(item)
    merged = []
    replaced = False
    for x in collection:
        if key(x) != item_key:
            merged.append(x)
        elif not replaced:
            merged.append(item)
            replaced = True
    if not replaced:
        merged.append(item)
    return merged


def remove_by_id(collection: Sequence[T], item_id: Any, key: Callable[[T], Any] = _id) -> List[T]:
    return [x for x in collection if key(x) != item_id]


def merge_sorted(
    collection: Sequence[T],
    items: Iterable[T],
    sort_key: Callable[[T], Any],
    limit: Optional[int] = None,
    key: Callable[[T], Any] = _id,
) -> List[T]:
    """
    Snapshot merge: union by id (incoming items win), newest first by `sort_key`.

    The result does not depend on whether pushes arrived before or after the
    snapshot read, and merging the same snapshot twice changes nothing.
    """
    by_id = {key(x): x for x in collection}
    for item in items:
        by_id[key(item)] = item
    merged = sorted(by_id.values(), key=lambda x: (sort_key(x), str(key(x))), reverse=True)
    if limit is not None and limit >= 0:
        merged = merged[:limit]
    return merged


# -------- filter views --------
def _matches(query: str, *values: Optional[str]) -> bool:
    q = query.lower()
    return any(v and q in v.lower() for v in values)


def filter_tables(
    tables: Iterable[LocalTable],
    event_id: Optional[str] = None,
    session: Optional[str] = None,
    search: str = "",
) -> List[LocalTable]:
    """Tables of an event, optionally narrowed by session and a name/topic search"""
    return [
        t for t in tables
        if (event_id is None or t.event_id == event_id)
        and (session is None or t.session == session)
        and (not search or _matches(search, t.name, t.topic, t.id))
    ]


def filter_transcripts(
    transcripts: Iterable[LocalTranscript],
    table_ids: Optional[Iterable[str]] = None,
    search: str = "",
) -> List[LocalTranscript]:
    """Segments for the given join codes (all when None), optionally matching search text"""
    wanted = None if table_ids is None else set(table_ids)
    return [
        t for t in transcripts
        if (wanted is None or t.table_id in wanted)
        and (not search or _matches(search, t.text, t.speaker))
    ]


def filter_insights(
    insights: Iterable[LocalInsight],
    table_ids: Optional[Iterable[str]] = None,
    types: Optional[Iterable[str]] = None,
    search: str = "",
) -> List[LocalInsight]:
    """Insights touching any of the given join codes, optionally by type and search text"""
    wanted = None if table_ids is None else set(table_ids)
    wanted_types = None if types is None else set(types)
    return [
        i for i in insights
        if (wanted is None or wanted.intersection(i.related_table_ids))
        and (wanted_types is None or i.type in wanted_types)
        and (not search or _matches(search, i.title, i.description))
    ]
