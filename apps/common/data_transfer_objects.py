from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TransactionType(str, Enum):
    JOB_POSTING_FEE = "job_posting_fee"
    VERIFICATION_FEE = "verification_fee"
    HIRE_SUCCESS_FEE = "hire_success_fee"
    SUBSCRIPTION = "subscription"
    DEFAULT = "default"


class UserTier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"
    PARTNER = "partner"


class FeeScheduleRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_rate: Decimal = Field(ge=0, le=1)
    min_fee_cents: int = Field(ge=0)
    max_fee_cents: int = Field(ge=0)

    @model_validator(mode='after')
    def validate_bounds(self):
        if self.min_fee_cents > self.max_fee_cents:
            raise ValueError('min_fee_cents cannot exceed max_fee_cents')
        return self


class VolumeTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    threshold_cents: int = Field(ge=0)
    discount_rate: Decimal = Field(ge=0, lt=1)


DEFAULT_SCHEDULE = {
    TransactionType.JOB_POSTING_FEE.value: FeeScheduleRow(base_rate=Decimal('0.05'), min_fee_cents=100, max_fee_cents=1000),
    TransactionType.VERIFICATION_FEE.value: FeeScheduleRow(base_rate=Decimal('0.10'), min_fee_cents=50, max_fee_cents=500),
    TransactionType.HIRE_SUCCESS_FEE.value: FeeScheduleRow(base_rate=Decimal('0.07'), min_fee_cents=500, max_fee_cents=2500),
    TransactionType.SUBSCRIPTION.value: FeeScheduleRow(base_rate=Decimal('0.02'), min_fee_cents=50, max_fee_cents=1000),
    TransactionType.DEFAULT.value: FeeScheduleRow(base_rate=Decimal('0.05'), min_fee_cents=100, max_fee_cents=1000),
}

DEFAULT_TIER_DISCOUNTS = {
    UserTier.FREE.value: Decimal('0'),
    UserTier.PREMIUM.value: Decimal('0.10'),
    UserTier.ENTERPRISE.value: Decimal('0.20'),
    UserTier.PARTNER.value: Decimal('0.30'),
}

DEFAULT_VOLUME_TIERS = [
    VolumeTier(threshold_cents=1000000, discount_rate=Decimal('0.05')),     # $10,000
    VolumeTier(threshold_cents=5000000, discount_rate=Decimal('0.10')),     # $50,000
    VolumeTier(threshold_cents=10000000, discount_rate=Decimal('0.15')),    # $100,000
    VolumeTier(threshold_cents=25000000, discount_rate=Decimal('0.20')),    # $250,000
]


class FeeConfiguration(BaseModel):
    """
    Immutable fee tables handed to the calculator at construction time.

    Tests build their own instances; the application builds one from
    ``settings.FEES`` in ``apps.fees.factory``.
    """
    model_config = ConfigDict(frozen=True)

    schedule: Dict[str, FeeScheduleRow] = Field(default_factory=lambda: dict(DEFAULT_SCHEDULE))
    tier_discounts: Dict[str, Decimal] = Field(default_factory=lambda: dict(DEFAULT_TIER_DISCOUNTS))
    volume_tiers: List[VolumeTier] = Field(default_factory=lambda: list(DEFAULT_VOLUME_TIERS))
    volume_window_days: int = Field(default=365, gt=0)
    fallback_minimum_fee_cents: int = Field(default=100, ge=0)
    lookup_timeout_seconds: Optional[float] = Field(default=2.0, gt=0)

    @field_validator('tier_discounts')
    @classmethod
    def validate_tier_discounts(cls, v):
        for tier, rate in v.items():
            if not Decimal('0') <= rate < Decimal('1'):
                raise ValueError(f'Discount for tier {tier} must be in [0, 1)')
        return v

    @field_validator('volume_tiers')
    @classmethod
    def validate_volume_tiers(cls, v):
        for previous, current in zip(v, v[1:]):
            if current.threshold_cents <= previous.threshold_cents:
                raise ValueError('Volume thresholds must be strictly increasing')
            if current.discount_rate < previous.discount_rate:
                raise ValueError('Volume discounts must not decrease as thresholds grow')
        return v

    def get_schedule_row(self, transaction_type: Optional[str]) -> Optional[FeeScheduleRow]:
        """Row for the transaction type, else the ``default`` row, else None."""
        if transaction_type and transaction_type in self.schedule:
            return self.schedule[transaction_type]
        return self.schedule.get(TransactionType.DEFAULT.value)

    def schedule_key_for(self, transaction_type: Optional[str]) -> Optional[str]:
        if transaction_type and transaction_type in self.schedule:
            return transaction_type
        if TransactionType.DEFAULT.value in self.schedule:
            return TransactionType.DEFAULT.value
        return None

    def volume_discount_for(self, volume_cents: int) -> Decimal:
        # Highest threshold not exceeding the volume wins
        for tier in reversed(self.volume_tiers):
            if volume_cents >= tier.threshold_cents:
                return tier.discount_rate
        return Decimal('0')


class UserTierInfo(BaseModel):
    tier: UserTier = UserTier.FREE
    special_role: Optional[str] = None
    custom_discount_rate: Optional[Decimal] = None


class LookupResult(BaseModel):
    """Outcome of one discount source; a failed source contributes no discount."""
    model_config = ConfigDict(frozen=True)

    source: str
    value: Decimal = Decimal('0')
    succeeded: bool = True
    error: Optional[str] = None

    @classmethod
    def ok(cls, source: str, value: Decimal) -> 'LookupResult':
        return cls(source=source, value=value)

    @classmethod
    def failed(cls, source: str, error: str) -> 'LookupResult':
        return cls(source=source, value=Decimal('0'), succeeded=False, error=error)


class FeeBreakdown(BaseModel):
    transaction_type: Optional[str] = None
    schedule_key: Optional[str] = None
    amount_cents: int = 0
    base_rate: Decimal = Decimal('0')
    base_fee_cents: int = 0
    user_discount_rate: Decimal = Decimal('0')
    volume_discount_rate: Decimal = Decimal('0')
    promotional_discount_rate: Decimal = Decimal('0')
    fee_cents: int = 0
    degraded_sources: List[str] = Field(default_factory=list)


class FeeHistoryEntry(BaseModel):
    id: str
    amount_cents: int
    fee_cents: int
    fee_percentage: float
    transaction_type: str
    timestamp: Optional[datetime] = None


class FeeStatistics(BaseModel):
    total_fees_cents: int = 0
    total_transactions: int = 0
    total_transaction_amount_cents: int = 0
    average_fee_percentage: float = 0.0
