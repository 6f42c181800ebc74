import pytest
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.utils import timezone

from apps.common.data_transfer_objects import FeeConfiguration, UserTier, UserTierInfo
from apps.fees.models import FeeTransaction, UserFeeProfile
from apps.fees.repositories import (
    InMemoryPromotion,
    InMemoryPromotionRepository,
    InMemoryTransactionVolumeRepository,
    InMemoryUserTierRepository,
)
from apps.fees.services.fee_calculation_service import FeeCalculationService

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=dt_timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fee_configuration():
    return FeeConfiguration()


@pytest.fixture
def user_tier_repository():
    return InMemoryUserTierRepository()


@pytest.fixture
def volume_repository():
    return InMemoryTransactionVolumeRepository()


@pytest.fixture
def promotion_repository():
    return InMemoryPromotionRepository()


@pytest.fixture
def fee_service(fee_configuration, user_tier_repository, volume_repository, promotion_repository):
    return FeeCalculationService(
        configuration=fee_configuration,
        user_tier_repository=user_tier_repository,
        volume_repository=volume_repository,
        promotion_repository=promotion_repository,
        clock=lambda: NOW
    )


@pytest.fixture
def set_tier(user_tier_repository):
    def _set_tier(user_id, tier=UserTier.FREE, special_role=None, custom_discount_rate=None):
        user_tier_repository.profiles[user_id] = UserTierInfo(
            tier=tier,
            special_role=special_role,
            custom_discount_rate=custom_discount_rate
        )
    return _set_tier


@pytest.fixture
def add_volume(volume_repository):
    def _add_volume(user_id, amount_cents, status='completed', days_ago=30):
        volume_repository.transactions.append({
            'user_id': user_id,
            'amount_cents': amount_cents,
            'status': status,
            'timestamp': NOW - timedelta(days=days_ago),
        })
    return _add_volume


@pytest.fixture
def running_promotion():
    def _running_promotion(transaction_types, discount_rate, active=True):
        return InMemoryPromotion(
            transaction_types=transaction_types,
            discount_rate=Decimal(discount_rate),
            start_date=NOW - timedelta(days=1),
            end_date=NOW + timedelta(days=1),
            active=active
        )
    return _running_promotion


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(username='employer', password='testpass')


@pytest.fixture
def other_user(django_user_model):
    return django_user_model.objects.create_user(username='candidate', password='testpass')


@pytest.fixture
def premium_profile(user):
    return UserFeeProfile.objects.create(
        user=user,
        subscription_plan='employer_premium_monthly',
        subscription_status=UserFeeProfile.SubscriptionStatus.ACTIVE
    )


@pytest.fixture
def make_transaction():
    def _make_transaction(user, amount_cents, fee_cents=0, status=FeeTransaction.TransactionStatus.COMPLETED,
                          days_ago=0, transaction_type='job_posting_fee'):
        return FeeTransaction.objects.create(
            user=user,
            transaction_type=transaction_type,
            amount_cents=amount_cents,
            fee_cents=fee_cents,
            net_amount_cents=amount_cents - fee_cents,
            status=status,
            timestamp=timezone.now() - timedelta(days=days_ago)
        )
    return _make_transaction
