# nutshell/models/transcript.py
from tortoise import fields, models


class Transcript(models.Model):
    id = fields.IntField(pk=True)
    table = fields.ForeignKeyField("models.Table", related_name="transcripts", on_delete=fields.CASCADE)

    timestamp = fields.DatetimeField(auto_now_add=True)  # Assigned on insert; ties ordered by id
    speaker = fields.CharField(max_length=128, null=True)
    text = fields.TextField()
    sentiment = fields.FloatField(default=0.0)  # -1 (negative) .. 1 (positive)
    is_quote = fields.BooleanField(default=False)

    class Meta:
        table = "transcripts"
