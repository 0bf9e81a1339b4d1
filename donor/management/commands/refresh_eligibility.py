from datetime import datetime

from django.core.management.base import BaseCommand, CommandError

from donor import services


class Command(BaseCommand):
    help = "Recompute cached donor eligibility flags whose recovery window has elapsed (dry-run unless --apply)"

    def add_arguments(self, parser):
        parser.add_argument("--apply", action="store_true", help="Write the corrected flags")
        parser.add_argument("--today", help="Evaluate as of this date (YYYY-MM-DD)")

    def handle(self, *args, **options):
        today = None
        if options.get("today"):
            try:
                today = datetime.strptime(options["today"], "%Y-%m-%d").date()
            except ValueError:
                raise CommandError("--today must be YYYY-MM-DD")

        apply = bool(options.get("apply"))
        stale = services.refresh_all_eligibility(today, apply=apply)

        for profile in stale:
            state = "eligible" if profile.is_eligible else "not eligible"
            self.stdout.write(
                f"- {profile.get_name} (last {profile.last_donation_type or 'blood'} on {profile.last_donation_date}): now {state}"
            )

        if not stale:
            self.stdout.write(self.style.SUCCESS("All cached eligibility flags are current."))
        elif apply:
            self.stdout.write(self.style.SUCCESS(f"Updated {len(stale)} donor profiles."))
        else:
            self.stdout.write(self.style.WARNING(f"{len(stale)} profiles are stale. Re-run with --apply to write."))
