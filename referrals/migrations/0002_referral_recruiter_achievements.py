import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

DEFAULT_ACHIEVEMENTS = [
    ('First Steps', 'Submit your first candidate referral', 'team_player', 'bronze', 1, 50),
    ('Rising Star', 'Have 5 referred candidates reach the interview stage', 'quality_rating', 'silver', 5, 100),
    ('Top Referrer', 'Successfully place 10 referred candidates', 'career_milestone', 'gold', 10, 500),
    ('Monthly Target', 'Submit 5 referrals in one calendar month', 'monthly_target', 'silver', 5, 100),
    ('Hot Streak', 'Have 3 decided referrals in a row end in a hire', 'referral_streak', 'gold', 3, 250),
    ('Speed Hero', 'Have a referral hired within 14 days of submission', 'speed_hero', 'bronze', 1, 75),
]


def seed_achievements(apps, schema_editor):
    Achievement = apps.get_model('referrals', 'Achievement')
    for name, description, type_, tier, required, reward in DEFAULT_ACHIEVEMENTS:
        Achievement.objects.get_or_create(
            name=name,
            defaults={
                'description': description,
                'type': type_,
                'tier': tier,
                'required_score': required,
                'reward_amount': reward,
            },
        )


def unseed_achievements(apps, schema_editor):
    Achievement = apps.get_model('referrals', 'Achievement')
    Achievement.objects.filter(name__in=[row[0] for row in DEFAULT_ACHIEVEMENTS]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('referrals', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='referral',
            name='recruiter',
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='handled_referrals', to=settings.AUTH_USER_MODEL),
        ),
        migrations.CreateModel(
            name='Achievement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('description', models.TextField()),
                ('type', models.CharField(choices=[('referral_streak', 'Referral streak'), ('monthly_target', 'Monthly target'), ('career_milestone', 'Career milestone'), ('quality_rating', 'Quality rating'), ('speed_hero', 'Speed hero'), ('team_player', 'Team player')], max_length=32)),
                ('tier', models.CharField(choices=[('bronze', 'Bronze'), ('silver', 'Silver'), ('gold', 'Gold'), ('platinum', 'Platinum'), ('diamond', 'Diamond')], max_length=16)),
                ('required_score', models.PositiveIntegerField()),
                ('reward_amount', models.PositiveIntegerField(default=0)),
                ('icon_url', models.URLField(blank=True, max_length=512, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['type'], name='achievement_type_idx'),
                    models.Index(fields=['tier'], name='achievement_tier_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='UserAchievement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('progress', models.PositiveIntegerField(default=0)),
                ('current_tier', models.CharField(choices=[('bronze', 'Bronze'), ('silver', 'Silver'), ('gold', 'Gold'), ('platinum', 'Platinum'), ('diamond', 'Diamond')], default='bronze', max_length=16)),
                ('is_completed', models.BooleanField(default=False)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('last_updated', models.DateTimeField(auto_now=True)),
                ('achievement', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='holders', to='referrals.achievement')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='achievements', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'constraints': [
                    models.UniqueConstraint(fields=('user', 'achievement'), name='user_achievement_unique'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AchievementProgress',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('progress_snapshot', models.JSONField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('achievement', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='progress_log', to='referrals.achievement')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='achievement_progress', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['user', 'created_at'], name='achievement_progress_user_idx'),
                ],
            },
        ),
        migrations.RunPython(seed_achievements, unseed_achievements),
    ]
