from django.db import migrations, models
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Message",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "from_user",
                    models.CharField(
                        db_index=True, help_text="Sender user id", max_length=64
                    ),
                ),
                (
                    "to_user",
                    models.CharField(
                        db_index=True, help_text="Recipient user id", max_length=64
                    ),
                ),
                ("text", models.TextField(blank=True, default="")),
                ("image", models.URLField(blank=True, default="", max_length=500)),
                ("audio", models.URLField(blank=True, default="", max_length=500)),
                (
                    "kind",
                    models.CharField(
                        choices=[("text", "Text"), ("image", "Image"), ("audio", "Audio")],
                        default="text",
                        max_length=10,
                    ),
                ),
                (
                    "read",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the recipient has read this message",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        db_index=True,
                        default=django.utils.timezone.now,
                        editable=False,
                        help_text="When the message was stored",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True, help_text="When the message was last modified"
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["from_user", "to_user", "created_at"],
                        name="chat_msg_pair_created_idx",
                    ),
                    models.Index(
                        fields=["to_user", "read"], name="chat_msg_unread_idx"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("from_user", ""), _negated=True),
                        name="chat_message_from_user_not_empty",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("to_user", ""), _negated=True),
                        name="chat_message_to_user_not_empty",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("text", ""), _negated=True),
                            models.Q(("image", ""), _negated=True),
                            models.Q(("audio", ""), _negated=True),
                            _connector="OR",
                        ),
                        name="chat_message_has_payload",
                    ),
                ],
            },
        ),
    ]
