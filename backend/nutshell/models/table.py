# nutshell/models/table.py
"""
Database model for discussion tables.
The numeric id is the persistence identity; the join code is what people type
and what every client-facing view uses. The two never change for a table.
"""
import secrets
import string
from enum import Enum

from tortoise import fields, models

JOIN_CODE_LENGTH = 6
JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits


class TableStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DEGRADED = "DEGRADED"
    OFFLINE = "OFFLINE"


class Table(models.Model):
    """
    Discussion table database model.

    Relationships:
    - Belongs to an Event (many-to-one)
    - Has many Transcript segments (via related_name="transcripts")
    """
    id = fields.IntField(pk=True)  # Serial, never reused
    event = fields.ForeignKeyField("models.Event", related_name="tables", on_delete=fields.CASCADE)
    join_code = fields.CharField(max_length=10, unique=True, index=True)
    name = fields.CharField(max_length=128)
    session = fields.CharField(max_length=128, null=True)
    topic = fields.CharField(max_length=255, null=True)
    status = fields.CharEnumField(TableStatus, max_length=16, default=TableStatus.OFFLINE)
    is_hot = fields.BooleanField(default=False)
    last_audio = fields.DatetimeField(null=True)
    last_transcript = fields.DatetimeField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "tables"

    @staticmethod
    def generate_join_code() -> str:
        return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(JOIN_CODE_LENGTH))

    @classmethod
    async def unused_join_code(cls) -> str:
        """Draw join codes until one is not taken yet."""
        code = cls.generate_join_code()
        while await cls.filter(join_code=code).exists():
            code = cls.generate_join_code()
        return code
