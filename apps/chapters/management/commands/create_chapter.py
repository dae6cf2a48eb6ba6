from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from apps.chapters.models import RESERVED_SLUGS, Chapter, slug_validator
from apps.users.views import create_chapter_with_owner


class Command(BaseCommand):
    help = 'Creates a chapter with an owner account, FREE subscription included.'

    def add_arguments(self, parser):
        parser.add_argument('slug', help='Chapter URL slug, e.g. alpha')
        parser.add_argument('email', help='Owner email')
        parser.add_argument('--name', default='', help='Owner full name')
        parser.add_argument('--password', default=None, help='Owner password (unusable if omitted)')
        parser.add_argument('--chapter-name', default='', help='Display name for the chapter')

    def handle(self, *args, **options):
        slug = options['slug']
        email = options['email'].strip().lower()

        try:
            slug_validator(slug)
        except ValidationError:
            raise CommandError('Slug must be 3-30 lowercase letters, digits or hyphens')
        if slug in RESERVED_SLUGS or Chapter.objects.filter(slug=slug).exists():
            raise CommandError(f'Chapter slug "{slug}" is not available')
        if get_user_model().objects.filter(email__iexact=email).exists():
            raise CommandError(f'A user with email {email} already exists')

        user, chapter, _ = create_chapter_with_owner(
            options['name'], email, options['password'], slug,
        )
        if options['chapter_name']:
            chapter.name = options['chapter_name']
            chapter.save(update_fields=['name', 'updated_at'])

        self.stdout.write(self.style.SUCCESS(f'Created chapter {chapter.slug} ("{chapter.name}") owned by {user.email}'))
        self.stdout.write(f'Join code: {chapter.join_code}')
        if options['password'] is None:
            self.stdout.write(self.style.WARNING('No password set; the owner must use "forgot password" to sign in'))
