# nutshell/models/event.py
"""
Database model for events.
An event groups the discussion tables whose conversations are analysed together.
"""
from tortoise import fields, models


class Event(models.Model):
    """
    Event database model.

    Relationships:
    - Has many Tables (via related_name="tables")
    - Has many Insights, Notices and AttendeeQuestions
    """
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=255)
    location = fields.CharField(max_length=255, null=True)
    status = fields.CharField(max_length=16, default="UPCOMING")  # UPCOMING / LIVE / COMPLETED
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "events"
