import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Donor',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('class_name', models.CharField(max_length=100)),
                ('grade', models.CharField(max_length=50)),
                ('cohort', models.CharField(blank=True, default='', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'donors',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['grade', 'class_name'], name='donors_grade_class_idx')],
                'constraints': [models.UniqueConstraint(fields=('name', 'class_name', 'grade', 'cohort'), name='unique_donor_identity')],
            },
        ),
        migrations.CreateModel(
            name='Group',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200, unique=True)),
                ('group_type', models.CharField(choices=[('FUND', 'Fund'), ('VOLUNTEER', 'Volunteer')], default='FUND', max_length=20)),
                ('description', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'ledger_groups',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Donation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('source', models.CharField(choices=[('SCAN', 'Scan'), ('MANUAL', 'Manual')], default='SCAN', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='donations', to='ledger.donor')),
                ('group', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='donations', to='ledger.group')),
                ('recorded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='recorded_donations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'donations',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['donor', 'created_at'], name='donations_donor_idx'),
                    models.Index(fields=['group', 'created_at'], name='donations_group_idx'),
                ],
                'constraints': [models.CheckConstraint(condition=models.Q(('amount__gt', 0)), name='donation_amount_positive')],
            },
        ),
        migrations.CreateModel(
            name='Participation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('date', models.DateField(default=django.utils.timezone.localdate)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='participations', to='ledger.donor')),
                ('group', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='participations', to='ledger.group')),
                ('recorded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='recorded_participations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'participations',
                'ordering': ['-date', '-created_at'],
                'constraints': [models.UniqueConstraint(fields=('donor', 'group'), name='unique_participation_per_group')],
            },
        ),
    ]
