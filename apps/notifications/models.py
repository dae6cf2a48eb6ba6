from django.db import models


class MessageLog(models.Model):
    """Outbound email/SMS delivery record."""

    class Channel(models.TextChoices):
        EMAIL = 'EMAIL', 'Email'
        SMS = 'SMS', 'SMS'

    chapter = models.ForeignKey(
        'chapters.Chapter',
        on_delete=models.CASCADE,
        related_name='message_logs'
    )
    channel = models.CharField(max_length=10, choices=Channel.choices)
    recipient = models.CharField(max_length=255)
    content = models.TextField()
    message_id = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=40)
    error = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.channel} to {self.recipient} ({self.status})"
