from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from apps.common.data_transfer_objects import TransactionType, UserTier
from apps.common.fields import Base58UUIDv5Field
from apps.common.mixins import TimeStampMixin


RATE_VALIDATORS = [MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('1'))]


class UserFeeProfile(TimeStampMixin):
    class SubscriptionStatus(models.TextChoices):
        ACTIVE = "active", "Active"
        PAST_DUE = "past_due", "Past Due"
        CANCELED = "canceled", "Canceled"
        INACTIVE = "inactive", "Inactive"

    id = Base58UUIDv5Field(primary_key=True)
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="fee_profile")
    subscription_plan = models.CharField(max_length=100, blank=True, help_text="Plan identifier, e.g. 'employer_premium_monthly'")
    subscription_status = models.CharField(
        max_length=20,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.INACTIVE
    )
    special_role = models.CharField(max_length=50, blank=True, help_text="Role granting a tier independently of the subscription, e.g. 'partner'")
    custom_discount_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        null=True,
        blank=True,
        validators=RATE_VALIDATORS,
        help_text="Overrides every tier-derived discount when set"
    )
    fee_settings_updated_at = models.DateTimeField(null=True, blank=True)
    fee_settings_updated_by = models.CharField(max_length=150, blank=True)
    fee_settings_reason = models.TextField(blank=True)

    def __str__(self):
        return f"Fee profile for {self.user} ({self.tier.value})"

    @property
    def tier(self) -> UserTier:
        if self.subscription_status != self.SubscriptionStatus.ACTIVE or not self.subscription_plan:
            return UserTier.FREE
        plan = self.subscription_plan.lower()
        for tier in (UserTier.PREMIUM, UserTier.ENTERPRISE, UserTier.PARTNER):
            if tier.value in plan:
                return tier
        return UserTier.FREE


class FeeTransaction(TimeStampMixin):
    class TransactionStatus(models.TextChoices):
        PENDING = "pending", "Pending"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"
        REFUNDED = "refunded", "Refunded"

    id = Base58UUIDv5Field(primary_key=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="fee_transactions")
    transaction_type = models.CharField(max_length=50, default=TransactionType.DEFAULT.value)
    amount_cents = models.PositiveIntegerField()
    fee_cents = models.PositiveIntegerField(default=0)
    net_amount_cents = models.IntegerField(default=0)
    currency = models.CharField(max_length=3, default="usd")
    status = models.CharField(max_length=20, choices=TransactionStatus.choices, default=TransactionStatus.PENDING)
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)
    external_reference = models.CharField(max_length=255, unique=True, null=True, blank=True, help_text="Payment processor reference")

    class Meta:
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['user', 'status', 'timestamp'], name='fees_txn_user_status_ts_idx'),
        ]

    def __str__(self):
        return f"{self.transaction_type} of ${self.amount_cents / 100:.2f} (fee ${self.fee_cents / 100:.2f}) - {self.get_status_display()}"

    @property
    def fee_percentage(self) -> float:
        if not self.amount_cents:
            return 0.0
        return self.fee_cents / self.amount_cents


class PromotionBase(TimeStampMixin):
    id = Base58UUIDv5Field(primary_key=True)
    name = models.CharField(max_length=255)
    transaction_types = models.JSONField(default=list, help_text="Transaction types the promotion applies to")
    discount_rate = models.DecimalField(max_digits=5, decimal_places=4, validators=RATE_VALIDATORS)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    active = models.BooleanField(default=True)

    class Meta:
        abstract = True

    def clean(self):
        super().clean()
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError("Promotion cannot end before it starts")

    def applies_to(self, transaction_type: str) -> bool:
        return transaction_type in (self.transaction_types or [])

    def is_running(self, now=None) -> bool:
        now = now or timezone.now()
        return self.active and self.start_date <= now <= self.end_date


class Promotion(PromotionBase):
    def __str__(self):
        return f"{self.name} ({self.discount_rate:.0%})"


class UserPromotion(PromotionBase):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="promotions")

    def __str__(self):
        return f"{self.name} for {self.user} ({self.discount_rate:.0%})"
