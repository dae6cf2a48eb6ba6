from django.conf import settings
from django.core.management.base import BaseCommand
from apps.payments.models import SubscriptionPlan


class Command(BaseCommand):
    help = 'Creates or updates the subscription plan catalogue from settings.SUBSCRIPTION_PLANS.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--deactivate-missing',
            action='store_true',
            help='Mark plans that are no longer configured as inactive',
        )

    def handle(self, *args, **options):
        configured = settings.SUBSCRIPTION_PLANS

        for name, config in configured.items():
            plan, created = SubscriptionPlan.objects.update_or_create(
                name=name,
                defaults={
                    'display_name': config['display_name'],
                    'description': config.get('description', ''),
                    'price_monthly': config.get('price_monthly', 0),
                    'stripe_price_id': config.get('stripe_price_id', ''),
                    'sort_order': config.get('sort_order', 0),
                    'is_active': True,
                }
            )
            if created:
                self.stdout.write(self.style.SUCCESS(f'Created plan: {plan.name}'))
            else:
                self.stdout.write(self.style.WARNING(f'Updated plan: {plan.name}'))

            if name != 'FREE' and not plan.stripe_price_id:
                self.stdout.write(self.style.WARNING(f'  {plan.name} has no Stripe price id configured'))

        if options['deactivate_missing']:
            stale = SubscriptionPlan.objects.exclude(name__in=list(configured)).filter(is_active=True)
            count = stale.update(is_active=False)
            if count:
                self.stdout.write(self.style.WARNING(f'Deactivated {count} unconfigured plan(s)'))

        self.stdout.write(self.style.SUCCESS('Plan seeding complete!'))
