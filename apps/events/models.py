from django.conf import settings
from django.db import models


class Event(models.Model):
    class Status(models.TextChoices):
        UPCOMING = 'UPCOMING', 'Upcoming'
        ONGOING = 'ONGOING', 'Ongoing'
        COMPLETED = 'COMPLETED', 'Completed'
        CANCELED = 'CANCELED', 'Canceled'

    chapter = models.ForeignKey('chapters.Chapter', on_delete=models.CASCADE, related_name='events')
    title = models.CharField(max_length=100)
    description = models.TextField(max_length=5000)
    location = models.CharField(max_length=200)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    capacity = models.PositiveIntegerField(null=True, blank=True, help_text="Empty for unlimited")
    is_public = models.BooleanField(default=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.UPCOMING)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='events_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['start_date', 'id']

    def __str__(self):
        return f"{self.title} ({self.start_date:%Y-%m-%d})"

    @property
    def accepts_rsvps(self) -> bool:
        return self.status in (self.Status.UPCOMING, self.Status.ONGOING)


class EventRSVP(models.Model):
    class Status(models.TextChoices):
        GOING = 'GOING', 'Going'
        NOT_GOING = 'NOT_GOING', 'Not going'
        MAYBE = 'MAYBE', 'Maybe'

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='rsvps')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='rsvps'
    )
    status = models.CharField(max_length=20, choices=Status.choices)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'RSVP'
        verbose_name_plural = 'RSVPs'
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'event'], name='unique_rsvp_per_event'),
        ]

    def __str__(self):
        return f"{self.user.email} - {self.event.title}: {self.status}"
