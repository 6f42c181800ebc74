from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from django.db.models import Sum

from apps.common.data_transfer_objects import UserTierInfo


class UserTierRepository(ABC):
    @abstractmethod
    def get_user_tier_and_discount(self, user_id: str) -> UserTierInfo:
        """Subscription tier and overrides; unknown users come back as the free tier"""
        pass


class TransactionVolumeRepository(ABC):
    @abstractmethod
    def get_trailing_volume_cents(self, user_id: str, window_start: datetime) -> int:
        """Sum of the user's completed transaction amounts since window_start"""
        pass


class PromotionRepository(ABC):
    @abstractmethod
    def get_active_discount_for_type(
        self,
        transaction_type: str,
        now: datetime,
        user_id: Optional[str] = None
    ) -> Decimal:
        """
        Highest running promotion discount for the transaction type.
        Searches global promotions when user_id is None, else that user's promotions.
        """
        pass


def _highest_discount(promotions: Iterable, transaction_type: str) -> Decimal:
    highest = Decimal('0')
    for promotion in promotions:
        if promotion.applies_to(transaction_type) and promotion.discount_rate > highest:
            highest = promotion.discount_rate
    return highest


class DjangoUserTierRepository(UserTierRepository):
    def get_user_tier_and_discount(self, user_id: str) -> UserTierInfo:
        from apps.fees.models import UserFeeProfile
        profile = UserFeeProfile.objects.filter(user_id=user_id).first()
        if profile is None:
            return UserTierInfo()
        return UserTierInfo(
            tier=profile.tier,
            special_role=profile.special_role or None,
            custom_discount_rate=profile.custom_discount_rate
        )


class DjangoTransactionVolumeRepository(TransactionVolumeRepository):
    def get_trailing_volume_cents(self, user_id: str, window_start: datetime) -> int:
        from apps.fees.models import FeeTransaction
        totals = FeeTransaction.objects.filter(
            user_id=user_id,
            status=FeeTransaction.TransactionStatus.COMPLETED,
            timestamp__gte=window_start
        ).aggregate(total=Sum('amount_cents'))
        return totals['total'] or 0


class DjangoPromotionRepository(PromotionRepository):
    def get_active_discount_for_type(
        self,
        transaction_type: str,
        now: datetime,
        user_id: Optional[str] = None
    ) -> Decimal:
        from apps.fees.models import Promotion, UserPromotion
        if user_id is None:
            queryset = Promotion.objects.all()
        else:
            queryset = UserPromotion.objects.filter(user_id=user_id)
        # transaction_types is a JSON list; membership is checked in Python so
        # the query stays portable across database backends
        running = queryset.filter(active=True, start_date__lte=now, end_date__gte=now)
        return _highest_discount(running, transaction_type)


class InMemoryUserTierRepository(UserTierRepository):
    def __init__(self, profiles: Optional[Dict[str, UserTierInfo]] = None):
        self.profiles = profiles if profiles is not None else {}

    def get_user_tier_and_discount(self, user_id: str) -> UserTierInfo:
        return self.profiles.get(user_id, UserTierInfo())


class InMemoryTransactionVolumeRepository(TransactionVolumeRepository):
    """Records are dicts with user_id, amount_cents, status and timestamp keys."""

    def __init__(self, transactions: Optional[List[Dict]] = None):
        self.transactions = transactions if transactions is not None else []

    def get_trailing_volume_cents(self, user_id: str, window_start: datetime) -> int:
        return sum(
            record.get('amount_cents') or 0
            for record in self.transactions
            if record.get('user_id') == user_id
            and record.get('status') == 'completed'
            and record['timestamp'] >= window_start
        )


class InMemoryPromotion:
    def __init__(
        self,
        transaction_types: List[str],
        discount_rate: Decimal,
        start_date: datetime,
        end_date: datetime,
        active: bool = True
    ):
        self.transaction_types = transaction_types
        self.discount_rate = discount_rate
        self.start_date = start_date
        self.end_date = end_date
        self.active = active

    def applies_to(self, transaction_type: str) -> bool:
        return transaction_type in self.transaction_types

    def is_running(self, now: datetime) -> bool:
        return self.active and self.start_date <= now <= self.end_date


class InMemoryPromotionRepository(PromotionRepository):
    def __init__(
        self,
        global_promotions: Optional[List[InMemoryPromotion]] = None,
        user_promotions: Optional[Dict[str, List[InMemoryPromotion]]] = None
    ):
        self.global_promotions = global_promotions if global_promotions is not None else []
        self.user_promotions = user_promotions if user_promotions is not None else {}

    def get_active_discount_for_type(
        self,
        transaction_type: str,
        now: datetime,
        user_id: Optional[str] = None
    ) -> Decimal:
        if user_id is None:
            promotions = self.global_promotions
        else:
            promotions = self.user_promotions.get(user_id, [])
        return _highest_discount((p for p in promotions if p.is_running(now)), transaction_type)
