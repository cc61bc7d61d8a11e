# nutshell/models/insight.py
"""
Database model for insights.
Insights are created manually by facilitators or by the extraction engine,
and may be updated later (e.g. review status), but the sync layer never deletes them.
"""
from enum import Enum

from tortoise import fields, models


class InsightType(str, Enum):
    THEME = "THEME"
    ACTION_ITEM = "ACTION_ITEM"
    QUESTION = "QUESTION"
    SENTIMENT_SPIKE = "SENTIMENT_SPIKE"
    GOLDEN_NUGGET = "GOLDEN_NUGGET"


class InsightStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Insight(models.Model):
    """
    Insight database model.

    related_table_ids holds numeric table ids; clients translate them to join codes.
    """
    id = fields.IntField(pk=True)
    event = fields.ForeignKeyField("models.Event", related_name="insights", on_delete=fields.CASCADE)
    type = fields.CharEnumField(InsightType, max_length=32)
    title = fields.CharField(max_length=255)
    description = fields.TextField(null=True)
    confidence = fields.FloatField(default=0.8)  # 0..1
    related_table_ids = fields.JSONField(default=list)
    evidence_count = fields.IntField(default=0)
    status = fields.CharEnumField(InsightStatus, max_length=16, default=InsightStatus.PENDING)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "insights"
