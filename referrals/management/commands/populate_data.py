"""
Management command to populate the database with sample referrals.
"""
import random
from datetime import timedelta

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from referrals.models import Alert, Referral, Reward, User
from referrals.services.achievements import refresh_achievements
from referrals.services.stats import invalidate_kpis

SAMPLE_REFERRALS = [
    ("John Smith", "john.s@example.com", "123-456-7891", "Frontend Developer", "Engineering", "pending", "Initial screening"),
    ("Sarah Wilson", "sarah.w@example.com", "123-456-7892", "UI Designer", "Design", "contacted", "Schedule interview"),
    ("Mike Johnson", "mike.j@example.com", "123-456-7893", "Backend Developer", "Engineering", "interviewing", "Technical interview"),
    ("Emily Davis", "emily.d@example.com", "123-456-7894", "Product Designer", "Design", "hired", "Onboarding"),
    ("Chris Wilson", "chris.w@example.com", "123-456-7895", "DevOps Engineer", "Engineering", "rejected", "Close candidacy"),
]
EXTRA_POSITIONS = [
    ("Registered Nurse", "Nursing"),
    ("ICU Nurse", "Critical Care"),
    ("Physical Therapist", "Rehabilitation"),
    ("Pharmacist", "Pharmacy"),
    ("Radiology Technician", "Imaging"),
]
FIRST_NAMES = ["Alex", "Jordan", "Taylor", "Morgan", "Jamie", "Avery", "Quinn", "Reese"]
LAST_NAMES = ["Garcia", "Nguyen", "Patel", "Brown", "Okafor", "Kim", "Lopez", "Reid"]
SOURCES = ["Clinician referral", "Job board", "LinkedIn", "Career fair"]
REWARD_AMOUNT = 500


class Command(BaseCommand):
    help = 'Populate database with sample referrals, rewards and alerts'

    def add_arguments(self, parser):
        parser.add_argument('--extra', type=int, default=20, help='number of random referrals to add')
        parser.add_argument('--seed', type=int, default=None)

    @transaction.atomic
    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        clinician = self._user('clinician1', User.ROLE_CLINICIAN, 'Casey Clinician')
        recruiter = self._user('recruiter1', User.ROLE_RECRUITER, 'Riley Recruiter')
        self._user('leadership1', User.ROLE_LEADERSHIP, 'Logan Lead')

        now = timezone.now()
        created = []
        for name, email, phone, position, department, status, next_steps in SAMPLE_REFERRALS:
            created.append(self._referral(
                clinician, recruiter, now - timedelta(days=rng.randint(1, 30)),
                candidate_name=name, candidate_email=email, candidate_phone=phone,
                position=position, department=department, status=status, next_steps=next_steps,
                source=SOURCES[0],
            ))

        stages = [value for value, _ in Referral.STATUS_CHOICES]
        for _ in range(options['extra']):
            first, last = rng.choice(FIRST_NAMES), rng.choice(LAST_NAMES)
            position, department = rng.choice(EXTRA_POSITIONS)
            created.append(self._referral(
                clinician, recruiter, now - timedelta(days=rng.randint(0, 180), hours=rng.randint(0, 23)),
                candidate_name=f'{first} {last}',
                candidate_email=f'{first}.{last}{rng.randint(1, 999)}@example.com'.lower(),
                position=position, department=department, status=rng.choice(stages),
                source=rng.choice(SOURCES), skill_tags=['BLS', department],
            ))

        for referral in created:
            if referral.status == Referral.STATUS_HIRED:
                Reward.objects.create(
                    user=referral.referrer, referral=referral, amount=REWARD_AMOUNT,
                    status=rng.choice([Reward.STATUS_PENDING, Reward.STATUS_PAID]),
                )
        Alert.objects.create(user=clinician, type=Alert.TYPE_SYSTEM, message='Welcome to the referral program!')
        refresh_achievements(clinician)
        invalidate_kpis()

        self.stdout.write(self.style.SUCCESS(f'Created {len(created)} referrals'))

    def _user(self, username, role, name):
        user, _ = User.objects.get_or_create(
            username=username,
            defaults={
                'role': role, 'name': name, 'email': f'{username}@example.com',
                'password': make_password('password123'),
            },
        )
        return user

    def _referral(self, clinician, recruiter, created_at, **fields):
        referral = Referral(referrer=clinician, created_at=created_at, **fields)
        referral.record_action('submitted', f'Referred by {clinician.display_name}', at=created_at)
        if referral.status != Referral.STATUS_PENDING:
            # moved a few days after submission
            moved_at = min(created_at + timedelta(days=3), timezone.now())
            referral.record_action('stage_change', f'pending -> {referral.status} by {recruiter.display_name}', at=moved_at)
            referral.recruiter = recruiter
        referral.save()
        return referral
