# nutshell/models/__init__.py
"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- Event: A live event that owns tables, insights, notices and questions
- Table: A discussion table, addressed by numeric id internally and by join code externally
- Transcript: Immutable transcript segment (belongs to Table)
- Insight: Classified insight (belongs to Event)
- Notice: Broadcast message to one table or the whole event
- AttendeeQuestion: Question submitted by an attendee
"""
from .event import Event
from .table import Table, TableStatus
from .transcript import Transcript
from .insight import Insight, InsightType, InsightStatus
from .notice import Notice
from .question import AttendeeQuestion
