import os

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand
from django.db import transaction

from blood.services.access import DONOR_GROUP


class Command(BaseCommand):
    help = "Create or update the LifeDrop back-office admin from LIFEDROP_ADMIN_* environment variables."

    def add_arguments(self, parser):
        parser.add_argument("--username", help="Overrides LIFEDROP_ADMIN_USERNAME")
        parser.add_argument("--email", help="Overrides LIFEDROP_ADMIN_EMAIL")
        parser.add_argument(
            "--reset-password",
            action="store_true",
            help="Set the password from LIFEDROP_ADMIN_PASSWORD even if the admin already exists.",
        )

    def handle(self, *args, **options):
        username = (options.get("username") or os.getenv("LIFEDROP_ADMIN_USERNAME") or "").strip()
        password = os.getenv("LIFEDROP_ADMIN_PASSWORD") or ""
        email = (options.get("email") or os.getenv("LIFEDROP_ADMIN_EMAIL") or "").strip()
        reset_password = options.get("reset_password") or (
            (os.getenv("LIFEDROP_ADMIN_RESET_PASSWORD") or "false").lower() == "true"
        )

        if not username or not password:
            self.stdout.write("Skipping admin provisioning (username or LIFEDROP_ADMIN_PASSWORD not set).")
            return

        User = get_user_model()

        with transaction.atomic():
            user, created = User.objects.get_or_create(
                username=username,
                defaults={"email": email, "is_staff": True, "is_superuser": True},
            )

            # Admins never sit in the donor portal
            donor_group = Group.objects.filter(name=DONOR_GROUP).first()
            if donor_group is not None:
                donor_group.user_set.remove(user)

            if created:
                user.set_password(password)
                user.save()
                self.stdout.write(self.style.SUCCESS(f"Created admin user: {username}"))
                return

            changed = []
            if email and user.email != email:
                user.email = email
                changed.append("email")
            if not user.is_staff or not user.is_superuser:
                user.is_staff = True
                user.is_superuser = True
                changed.append("role")
            if reset_password:
                user.set_password(password)
                changed.append("password")

            if changed:
                user.save()
                self.stdout.write(f"Updated admin user {username}: {', '.join(changed)}")
            else:
                self.stdout.write(f"Admin user already present: {username}")
