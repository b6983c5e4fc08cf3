from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password

from referrals.models import User

TEST_SET = [
    ("clinician1", User.ROLE_CLINICIAN, "Casey Clinician"),
    ("recruiter1", User.ROLE_RECRUITER, "Riley Recruiter"),
    ("leadership1", User.ROLE_LEADERSHIP, "Logan Lead"),
]


class Command(BaseCommand):
    help = "Ensure one test user per role exists with the given password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="password123")

    def handle(self, *args, **opts):
        password = make_password(opts["password"])
        for username, role, name in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={
                    "role": role,
                    "name": name,
                    "email": f"{username}@example.com",
                    "password": password,
                    "is_active": True,
                },
            )
            if not created:
                # reset password, role and active flag
                u.password = password
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
