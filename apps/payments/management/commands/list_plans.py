from django.core.management.base import BaseCommand
from apps.payments.models import SubscriptionPlan
from apps.payments.plans import PLAN_FEATURES

class Command(BaseCommand):
    help = 'List subscription plans'

    def handle(self, *args, **options):
        plans = SubscriptionPlan.objects.all()
        if not plans:
            self.stdout.write("No plans found in database. Run 'manage.py seed_plans' first.")
            return

        self.stdout.write("Name | Display Name | Monthly | Stripe Price | Active")
        self.stdout.write("-" * 60)
        for p in plans:
            self.stdout.write(
                f"{p.name} | {p.display_name} | ${p.price_monthly} | {p.stripe_price_id or '-'} | {p.is_active}"
            )
            enabled = [name for name, on in PLAN_FEATURES.get(p.name, {}).items() if on]
            self.stdout.write(f"    features: {', '.join(enabled)}")
