# nutshell/models/notice.py
from tortoise import fields, models


class Notice(models.Model):
    """
    Broadcast message from the event admin.
    table is null when the notice addresses the whole event.
    """
    id = fields.IntField(pk=True)
    event = fields.ForeignKeyField("models.Event", related_name="notices", on_delete=fields.CASCADE)
    table = fields.ForeignKeyField("models.Table", related_name="notices", null=True, on_delete=fields.CASCADE)
    message = fields.TextField()
    is_read = fields.BooleanField(default=False)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "notices"
