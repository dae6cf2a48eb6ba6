"""
Chapter (tenant) model.
"""
import uuid

from django.core.validators import RegexValidator
from django.db import models

slug_validator = RegexValidator(
    r'^[a-z0-9-]{3,30}$',
    'Slug must be 3-30 characters of lowercase letters, numbers and hyphens.',
)
color_validator = RegexValidator(
    r'^#[0-9A-Fa-f]{6}$',
    'Color must be a hex value like #1D4ED8.',
)

# Top-level paths a chapter slug would shadow
RESERVED_SLUGS = frozenset({
    'admin', 'api', 'check-slug', 'forgot-password', 'login', 'logout',
    'reset-password', 'signup', 'static',
})


def generate_join_code() -> str:
    return str(uuid.uuid4())


class Chapter(models.Model):
    """
    A fraternity or sorority chapter. Every tenant-scoped record points here
    and the slug is the tenant identity used in every URL.
    """

    slug = models.SlugField(max_length=30, unique=True, validators=[slug_validator])
    name = models.CharField(max_length=100)
    join_code = models.CharField(max_length=64, default=generate_join_code)

    stripe_customer_id = models.CharField(max_length=255, blank=True, null=True, unique=True)

    # Branding
    primary_color = models.CharField(max_length=7, default='#1D4ED8', validators=[color_validator])
    logo_url = models.URLField(blank=True)

    # Public landing page
    public_description = models.TextField(blank=True)
    contact_email = models.EmailField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.slug})"

    def regenerate_join_code(self) -> str:
        self.join_code = generate_join_code()
        self.save(update_fields=['join_code', 'updated_at'])
        return self.join_code
