import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional

from django.conf import settings
from pydantic import ValidationError

from apps.common.data_transfer_objects import FeeConfiguration
from .repositories import (
    DjangoPromotionRepository, DjangoTransactionVolumeRepository, DjangoUserTierRepository
)
from .services.fee_calculation_service import FeeCalculationService

SETTING_FIELDS = {
    'SCHEDULE': 'schedule',
    'TIER_DISCOUNTS': 'tier_discounts',
    'VOLUME_TIERS': 'volume_tiers',
    'VOLUME_WINDOW_DAYS': 'volume_window_days',
    'FALLBACK_MINIMUM_FEE_CENTS': 'fallback_minimum_fee_cents',
    'LOOKUP_TIMEOUT_SECONDS': 'lookup_timeout_seconds',
}

_lookup_executor = None
_executor_lock = threading.Lock()


def build_fee_configuration(fee_settings: Optional[Dict] = None) -> FeeConfiguration:
    """
    Build the immutable fee configuration from a FEES settings dict.
    Keys that are left out keep the engine defaults.
    """
    if fee_settings is None:
        fee_settings = getattr(settings, 'FEES', {})

    overrides = {
        field: fee_settings[setting_key]
        for setting_key, field in SETTING_FIELDS.items()
        if setting_key in fee_settings
    }
    try:
        return FeeConfiguration(**overrides)
    except ValidationError as e:
        raise ValueError(
            f"Invalid FEES configuration. Please check your settings: {str(e)}"
        )


def get_lookup_executor(max_workers: int = 8) -> ThreadPoolExecutor:
    """Process-wide pool for discount lookups, created on first use"""
    global _lookup_executor
    with _executor_lock:
        if _lookup_executor is None:
            _lookup_executor = ThreadPoolExecutor(
                max_workers=max_workers,
                thread_name_prefix='fee-lookup'
            )
        return _lookup_executor


def get_fee_calculation_service() -> FeeCalculationService:
    """
    Factory function returning a FeeCalculationService wired to the ORM
    repositories and configured from settings.FEES.
    """
    fee_settings = getattr(settings, 'FEES', {})
    executor = None
    if fee_settings.get('CONCURRENT_LOOKUPS', False):
        executor = get_lookup_executor(fee_settings.get('LOOKUP_WORKERS', 8))

    return FeeCalculationService(
        configuration=build_fee_configuration(fee_settings),
        user_tier_repository=DjangoUserTierRepository(),
        volume_repository=DjangoTransactionVolumeRepository(),
        promotion_repository=DjangoPromotionRepository(),
        executor=executor
    )
