"""
Live event state

The viewer's local picture of one event: tables, transcripts, insights,
notices and attendee questions. It is fed by two sources that may interleave
in any order, REST snapshots and push envelopes, and converges either way
because every merge is an idempotent upsert by id.

The hub fans every envelope out to every viewer, so anything carrying another
event's id is ignored here.

The id mapper is derived from the current table collection and rebuilt on
every table change. Handlers read `self.mapper` when they run, never a copy
captured at subscribe time.

Push changes are stamped with a generation number. A snapshot read that
started before a push (see `snapshot_mark`) cannot undo it: tables and
insights the push touched afterwards keep their pushed version.
"""
import datetime as dt
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..config import settings
from ..core.envelope import EventType
from . import merge
from .identity import TableIdMapper
from .records import LocalInsight, LocalNotice, LocalQuestion, LocalTable, LocalTranscript
from .sync import SyncManager

logger = logging.getLogger(__name__)

_EPOCH = dt.datetime.min.replace(tzinfo=dt.timezone.utc)


def _recency(item) -> tuple:
    numeric_id = int(item.id) if item.id.isdigit() else 0
    return (item.timestamp or _EPOCH, numeric_id)


class LiveEventState:
    """
    Local state for one event.

    Parameters:
        event_id: Event this viewer is looking at (string form of the numeric id)
        own_table_db_id: Numeric id of the facilitator's table, if this is a table console;
            used to decide which notices are addressed to this session
        transcript_limit / insight_limit / notice_limit: Retention caps, oldest evicted first
    """

    def __init__(
        self,
        event_id: str,
        own_table_db_id: Optional[int] = None,
        transcript_limit: Optional[int] = None,
        insight_limit: Optional[int] = None,
        notice_limit: Optional[int] = None,
    ):
        self.event_id = str(event_id)
        self.own_table_db_id = own_table_db_id
        self.transcript_limit = settings.transcript_retention if transcript_limit is None else transcript_limit
        self.insight_limit = settings.insight_retention if insight_limit is None else insight_limit
        self.notice_limit = settings.notice_retention if notice_limit is None else notice_limit

        self.tables: List[LocalTable] = []
        self.transcripts: List[LocalTranscript] = []
        self.insights: List[LocalInsight] = []
        self.notices: List[LocalNotice] = []
        self.questions: List[LocalQuestion] = []
        self._mapper = TableIdMapper({})
        self._unsubscribers: List[Callable[[], None]] = []

        self._generation = 0
        self._applied_at = 0  # Mark of the newest snapshot applied so far
        self._table_marks: Dict[int, int] = {}
        self._insight_marks: Dict[str, int] = {}

    @property
    def mapper(self) -> TableIdMapper:
        """Mapper for the current table collection"""
        return self._mapper

    # -------- wiring --------
    def bind(self, sync: SyncManager) -> None:
        """Register this state's handlers on a sync manager."""
        handlers: Dict[EventType, Callable[[Any], None]] = {
            EventType.TABLE_CREATED: self.on_table_upserted,
            EventType.TABLE_UPDATED: self.on_table_upserted,
            EventType.TABLE_DELETED: self.on_table_deleted,
            EventType.TRANSCRIPT_ADDED: self.on_transcript_added,
            EventType.INSIGHT_ADDED: self.on_insight_added,
            EventType.INSIGHT_UPDATED: self.on_insight_added,
            EventType.INSIGHTS_GENERATED: self.on_insights_generated,
            EventType.NOTICE: self.on_notice,
            EventType.QUESTION_ADDED: self.on_question_added,
        }
        for event_type, handler in handlers.items():
            self._unsubscribers.append(sync.subscribe(event_type, handler))

    def unbind(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    # -------- push generations --------
    def snapshot_mark(self) -> int:
        """Take this right before requesting a snapshot; pass it to apply_snapshot(since=...)."""
        return self._generation

    def _touch(self, marks: Dict[Any, int], key: Any) -> None:
        self._generation += 1
        marks[key] = self._generation

    # -------- tables --------
    def _set_tables(self, tables: List[LocalTable]) -> None:
        self.tables = tables
        self._mapper = TableIdMapper.from_tables(tables)
        mapper = self._mapper
        self.transcripts = [t.rekey(mapper) for t in self.transcripts]
        self.insights = [i.rekey(mapper) for i in self.insights]

    def on_table_upserted(self, data: Mapping[str, Any]) -> None:
        table = LocalTable.from_wire(data)
        if table.event_id != self.event_id:
            return
        self._touch(self._table_marks, table.db_id)
        # A join code belongs to one numeric id; drop any stale entry for this db id
        tables = [t for t in self.tables if t.db_id != table.db_id or t.id == table.id]
        self._set_tables(merge.upsert_in_place(tables, table))

    def on_table_deleted(self, data: Mapping[str, Any]) -> None:
        event_id = data.get("eventId")
        if event_id is not None and str(event_id) != self.event_id:
            return
        db_id = int(data["id"])
        self._touch(self._table_marks, db_id)
        remaining = [t for t in self.tables if t.db_id != db_id]
        if len(remaining) != len(self.tables):
            self._set_tables(remaining)

    # -------- transcripts / insights --------
    def _is_own_segment(self, segment: LocalTranscript, mapper: TableIdMapper) -> bool:
        if segment.event_id is not None:
            return segment.event_id == self.event_id
        return mapper.knows(segment.table_db_id)

    def on_transcript_added(self, data: Mapping[str, Any]) -> None:
        segment = LocalTranscript.from_wire(data, self.mapper)
        if not self._is_own_segment(segment, self.mapper):
            return
        if not self.mapper.knows(segment.table_db_id):
            logger.info("[state] transcript %s references unknown table %s, kept under raw id",
                        segment.id, segment.table_db_id)
        self.transcripts = merge.upsert_head(self.transcripts, segment, limit=self.transcript_limit)

    def on_insight_added(self, data: Mapping[str, Any]) -> None:
        insight = LocalInsight.from_wire(data, self.mapper)
        if insight.event_id != self.event_id:
            return
        self._touch(self._insight_marks, insight.id)
        self.insights = merge.upsert_head(self.insights, insight, limit=self.insight_limit)

    def on_insights_generated(self, data: Any) -> None:
        items = data if isinstance(data, list) else [data]
        for item in items:
            self.on_insight_added(item)

    # -------- notices / questions --------
    def on_notice(self, data: Mapping[str, Any]) -> None:
        notice = LocalNotice.from_wire(data)
        if notice.event_id != self.event_id:
            return
        if self.own_table_db_id is not None and not notice.addresses(self.own_table_db_id):
            return
        self.notices = ([notice] + self.notices)[: self.notice_limit]

    def take_notices(self) -> List[LocalNotice]:
        """Return and clear pending notices (each is read once)."""
        pending, self.notices = self.notices, []
        return pending

    def on_question_added(self, data: Mapping[str, Any]) -> None:
        question = LocalQuestion.from_wire(data)
        if question.event_id != self.event_id:
            return
        self.questions = merge.upsert_head(self.questions, question)

    # -------- snapshot reconciliation --------
    def apply_snapshot(self, snapshot: Mapping[str, Any], since: Optional[int] = None) -> None:
        """
        Fold a full REST snapshot into local state.

        Tables follow the snapshot's membership, except tables a push touched
        after `since`; those keep their pushed version (or stay deleted).
        Transcripts and insights are unioned by id with what push already
        delivered; insights pushed after `since` win over the snapshot's row.
        Everything is re-keyed with the new mapper.

        Every row is parsed before anything is assigned, so a malformed
        snapshot raises and leaves the state untouched.

        Parameters:
            snapshot: The `data` object of GET /events/{id}/snapshot
            since: snapshot_mark() taken when the read started; defaults to the
                mark of the previous snapshot, i.e. pushes since then are kept
        """
        since = self._applied_at if since is None else since

        fetched = [LocalTable.from_wire(t) for t in snapshot.get("tables") or []]
        tables = self._reconcile_tables([t for t in fetched if t.event_id == self.event_id], since)
        mapper = TableIdMapper.from_tables(tables)

        transcripts = [LocalTranscript.from_wire(t, mapper) for t in snapshot.get("transcripts") or []]
        transcripts = [t for t in transcripts if self._is_own_segment(t, mapper)]
        insights = [LocalInsight.from_wire(i, mapper) for i in snapshot.get("insights") or []]
        insights = [
            i for i in insights
            if i.event_id == self.event_id and self._insight_marks.get(i.id, 0) <= since
        ]

        merged_transcripts = merge.merge_sorted(
            [t.rekey(mapper) for t in self.transcripts], transcripts, _recency, limit=self.transcript_limit
        )
        merged_insights = merge.merge_sorted(
            [i.rekey(mapper) for i in self.insights], insights, _recency, limit=self.insight_limit
        )

        self.tables = tables
        self._mapper = mapper
        self.transcripts = merged_transcripts
        self.insights = merged_insights
        self._applied_at = max(self._applied_at, since)
        self._prune_marks()

    def _reconcile_tables(self, fetched: List[LocalTable], since: int) -> List[LocalTable]:
        by_db_id = {t.db_id: t for t in fetched}
        local = {t.db_id: t for t in self.tables}
        for db_id, generation in self._table_marks.items():
            if generation <= since:
                continue
            if db_id in local:
                by_db_id[db_id] = local[db_id]
            else:
                by_db_id.pop(db_id, None)
        return list(by_db_id.values())

    def _prune_marks(self) -> None:
        # Marks at or below the newest applied snapshot can no longer win over anything
        floor = self._applied_at
        self._table_marks = {k: g for k, g in self._table_marks.items() if g > floor}
        self._insight_marks = {k: g for k, g in self._insight_marks.items() if g > floor}

    # -------- views --------
    def table_view(self, session: Optional[str] = None, search: str = "") -> List[LocalTable]:
        return merge.filter_tables(self.tables, event_id=self.event_id, session=session, search=search)

    def transcripts_for(self, table_ids=None, search: str = "") -> List[LocalTranscript]:
        return merge.filter_transcripts(self.transcripts, table_ids=table_ids, search=search)

    def insights_for(self, table_ids=None, types=None, search: str = "") -> List[LocalInsight]:
        return merge.filter_insights(self.insights, table_ids=table_ids, types=types, search=search)

    def sessions(self) -> List[str]:
        seen = []
        for t in self.tables:
            if t.session not in seen:
                seen.append(t.session)
        return seen
