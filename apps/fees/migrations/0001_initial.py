import apps.common.fields
from decimal import Decimal
from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Promotion',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('id', apps.common.fields.Base58UUIDv5Field(primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('transaction_types', models.JSONField(default=list, help_text='Transaction types the promotion applies to')),
                ('discount_rate', models.DecimalField(decimal_places=4, max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0')), django.core.validators.MaxValueValidator(Decimal('1'))])),
                ('start_date', models.DateTimeField()),
                ('end_date', models.DateTimeField()),
                ('active', models.BooleanField(default=True)),
            ],
            options={
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='UserPromotion',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('id', apps.common.fields.Base58UUIDv5Field(primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('transaction_types', models.JSONField(default=list, help_text='Transaction types the promotion applies to')),
                ('discount_rate', models.DecimalField(decimal_places=4, max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0')), django.core.validators.MaxValueValidator(Decimal('1'))])),
                ('start_date', models.DateTimeField()),
                ('end_date', models.DateTimeField()),
                ('active', models.BooleanField(default=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='promotions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='UserFeeProfile',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('id', apps.common.fields.Base58UUIDv5Field(primary_key=True, serialize=False)),
                ('subscription_plan', models.CharField(blank=True, help_text="Plan identifier, e.g. 'employer_premium_monthly'", max_length=100)),
                ('subscription_status', models.CharField(choices=[('active', 'Active'), ('past_due', 'Past Due'), ('canceled', 'Canceled'), ('inactive', 'Inactive')], default='inactive', max_length=20)),
                ('special_role', models.CharField(blank=True, help_text="Role granting a tier independently of the subscription, e.g. 'partner'", max_length=50)),
                ('custom_discount_rate', models.DecimalField(blank=True, decimal_places=4, help_text='Overrides every tier-derived discount when set', max_digits=5, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0')), django.core.validators.MaxValueValidator(Decimal('1'))])),
                ('fee_settings_updated_at', models.DateTimeField(blank=True, null=True)),
                ('fee_settings_updated_by', models.CharField(blank=True, max_length=150)),
                ('fee_settings_reason', models.TextField(blank=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='fee_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='FeeTransaction',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('id', apps.common.fields.Base58UUIDv5Field(primary_key=True, serialize=False)),
                ('transaction_type', models.CharField(default='default', max_length=50)),
                ('amount_cents', models.PositiveIntegerField()),
                ('fee_cents', models.PositiveIntegerField(default=0)),
                ('net_amount_cents', models.IntegerField(default=0)),
                ('currency', models.CharField(default='usd', max_length=3)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('failed', 'Failed'), ('refunded', 'Refunded')], default='pending', max_length=20)),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('external_reference', models.CharField(blank=True, help_text='Payment processor reference', max_length=255, null=True, unique=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='fee_transactions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-timestamp'],
                'indexes': [models.Index(fields=['user', 'status', 'timestamp'], name='fees_txn_user_status_ts_idx')],
            },
        ),
    ]
