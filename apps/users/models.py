"""
Custom User model keyed by email.
"""
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models


class UserManager(BaseUserManager):
    """Manager for users that log in with their email address."""

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('An email address is required')
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        if not extra_fields['is_staff'] or not extra_fields['is_superuser']:
            raise ValueError('Superuser must have is_staff=True and is_superuser=True.')
        return self._create_user(email, password, **extra_fields)

    def get_by_email(self, email):
        return self.filter(email__iexact=email.strip()).first()


class User(AbstractUser):
    """
    A person who can hold memberships in any number of chapters.
    Users created through Google login have no usable password.
    """

    username = None

    email = models.EmailField(unique=True)
    name = models.CharField(max_length=150, blank=True)
    image = models.URLField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = 'User'
        verbose_name_plural = 'Users'

    def __str__(self):
        return self.email

    @property
    def display_name(self) -> str:
        return self.name or self.get_full_name() or self.email

    @property
    def first_name_or_email(self) -> str:
        if self.name:
            return self.name.split()[0]
        return self.email.split('@')[0]


class VerificationToken(models.Model):
    """One-time tokens (password reset) addressed to an email identifier."""

    PASSWORD_RESET_PREFIX = 'pwd_reset_'

    identifier = models.EmailField(db_index=True)
    token = models.CharField(max_length=255, unique=True)
    expires = models.DateTimeField()

    class Meta:
        unique_together = ('identifier', 'token')

    def __str__(self):
        return f"{self.identifier} (expires {self.expires:%Y-%m-%d %H:%M})"
