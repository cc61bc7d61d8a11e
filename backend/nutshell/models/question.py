# nutshell/models/question.py
from tortoise import fields, models


class AttendeeQuestion(models.Model):
    id = fields.IntField(pk=True)
    event = fields.ForeignKeyField("models.Event", related_name="questions", on_delete=fields.CASCADE)
    question = fields.TextField()
    asked_by = fields.CharField(max_length=128, null=True)  # Null when anonymous
    is_anonymous = fields.BooleanField(default=True)
    votes = fields.IntField(default=0)
    answered = fields.BooleanField(default=False)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "attendee_questions"
