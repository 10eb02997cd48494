import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('ledger', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='RetiredTokenValue',
            fields=[
                ('value', models.CharField(max_length=64, primary_key=True, serialize=False)),
                ('kind', models.CharField(choices=[('IDENTITY', 'Identity'), ('PRESET', 'Preset')], max_length=20)),
                ('retired_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'retired_token_values',
                'ordering': ['-retired_at'],
            },
        ),
        migrations.CreateModel(
            name='Token',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('value', models.CharField(max_length=64, unique=True)),
                ('kind', models.CharField(choices=[('IDENTITY', 'Identity'), ('PRESET', 'Preset')], max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('amount', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('label', models.CharField(blank=True, max_length=200)),
                ('image_path', models.CharField(blank=True, max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='issued_tokens', to=settings.AUTH_USER_MODEL)),
                ('donor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='tokens', to='ledger.donor')),
                ('fund_group', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='preset_tokens', to='ledger.group')),
            ],
            options={
                'db_table': 'tokens',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['kind', 'is_active'], name='tokens_kind_active_idx'),
                    models.Index(fields=['created_at'], name='tokens_created_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(('amount__isnull', True), ('donor__isnull', False), ('fund_group__isnull', True), ('kind', 'IDENTITY')),
                            models.Q(('donor__isnull', True), ('fund_group__isnull', False), ('kind', 'PRESET')),
                            _connector='OR',
                        ),
                        name='token_kind_payload',
                    ),
                    models.CheckConstraint(
                        condition=models.Q(('amount__isnull', True), ('amount__gt', 0), _connector='OR'),
                        name='token_amount_positive',
                    ),
                ],
            },
        ),
    ]
