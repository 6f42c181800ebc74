import logging
import time
from concurrent import futures
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, Optional

from django.db import close_old_connections
from django.utils import timezone

from apps.common.data_transfer_objects import (
    FeeBreakdown, FeeConfiguration, LookupResult, UserTier
)
from ..interfaces import FeeCalculationServiceInterface
from ..repositories import PromotionRepository, TransactionVolumeRepository, UserTierRepository

logger = logging.getLogger(__name__)

USER_DISCOUNT = "user_discount"
VOLUME_DISCOUNT = "volume_discount"
GLOBAL_PROMOTION = "global_promotion"
USER_PROMOTION = "user_promotion"


def round_cents(value: Decimal) -> int:
    """Round half up to whole cents"""
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def apply_discount(fee_cents: int, discount_rate: Decimal) -> int:
    return round_cents(Decimal(fee_cents) * (Decimal('1') - discount_rate))


def clamp_rate(rate) -> Decimal:
    return min(Decimal('1'), max(Decimal('0'), Decimal(str(rate))))


def _run_in_worker(lookup: Callable[[], Decimal]) -> Decimal:
    # Worker threads hold their own DB connections
    close_old_connections()
    try:
        return lookup()
    finally:
        close_old_connections()


class FeeCalculationService(FeeCalculationServiceInterface):
    """
    Computes transaction fees from a fee schedule and three discount sources.

    The fee is the base rate applied to the amount, clamped to the schedule
    row's bounds, then reduced in turn by the user discount, the volume
    discount and the best running promotion. Each discount compounds on the
    previous result. The row minimum is enforced again at the end.

    Discount lookups that fail or time out contribute no discount. With an
    executor the lookups run concurrently against a shared deadline; without
    one they run inline.
    """

    def __init__(
        self,
        configuration: FeeConfiguration,
        user_tier_repository: UserTierRepository,
        volume_repository: TransactionVolumeRepository,
        promotion_repository: PromotionRepository,
        executor: Optional[futures.Executor] = None,
        clock: Callable[[], datetime] = timezone.now
    ):
        self.configuration = configuration
        self.user_tier_repository = user_tier_repository
        self.volume_repository = volume_repository
        self.promotion_repository = promotion_repository
        self.executor = executor
        self.clock = clock

    def calculate_fee(
        self,
        transaction_type: Optional[str],
        amount_cents: Optional[int],
        user_id: Optional[str] = None
    ) -> int:
        return self.get_fee_breakdown(transaction_type, amount_cents, user_id).fee_cents

    def get_fee_breakdown(
        self,
        transaction_type: Optional[str],
        amount_cents: Optional[int],
        user_id: Optional[str] = None
    ) -> FeeBreakdown:
        try:
            return self._calculate(transaction_type, amount_cents, user_id)
        except Exception as e:
            logger.exception(f"Fee calculation error for {transaction_type}: {str(e)}")
            return FeeBreakdown(
                transaction_type=transaction_type,
                amount_cents=amount_cents if isinstance(amount_cents, int) else 0,
                fee_cents=self._safe_minimum_fee(transaction_type)
            )

    def _calculate(
        self,
        transaction_type: Optional[str],
        amount_cents: Optional[int],
        user_id: Optional[str]
    ) -> FeeBreakdown:
        if not amount_cents or amount_cents <= 0:
            logger.warning(f"Invalid transaction amount {amount_cents} for {transaction_type}; no fee charged")
            return FeeBreakdown(transaction_type=transaction_type, amount_cents=amount_cents or 0, fee_cents=0)

        row = self.configuration.get_schedule_row(transaction_type)
        if row is None:
            logger.error(f"No fee schedule for {transaction_type} and no default row configured")
            return FeeBreakdown(
                transaction_type=transaction_type,
                amount_cents=amount_cents,
                fee_cents=self.configuration.fallback_minimum_fee_cents
            )

        base_fee = round_cents(Decimal(amount_cents) * row.base_rate)
        base_fee = max(row.min_fee_cents, min(base_fee, row.max_fee_cents))

        breakdown = FeeBreakdown(
            transaction_type=transaction_type,
            schedule_key=self.configuration.schedule_key_for(transaction_type),
            amount_cents=amount_cents,
            base_rate=row.base_rate,
            base_fee_cents=base_fee,
            fee_cents=base_fee
        )

        if not user_id:
            return breakdown

        now = self.clock()
        results = self._run_lookups(self._discount_lookups(transaction_type, user_id, now))

        user_discount = results[USER_DISCOUNT].value
        volume_discount = results[VOLUME_DISCOUNT].value
        # Global and user promotions never stack
        promotional_discount = max(results[GLOBAL_PROMOTION].value, results[USER_PROMOTION].value)

        fee = base_fee
        if user_discount > 0:
            fee = apply_discount(fee, user_discount)
        if volume_discount > 0:
            fee = apply_discount(fee, volume_discount)
        if promotional_discount > 0:
            fee = apply_discount(fee, promotional_discount)
        fee = max(row.min_fee_cents, fee)

        breakdown = breakdown.model_copy(update={
            'user_discount_rate': user_discount,
            'volume_discount_rate': volume_discount,
            'promotional_discount_rate': promotional_discount,
            'fee_cents': fee,
            'degraded_sources': [result.source for result in results.values() if not result.succeeded],
        })

        logger.info(
            f"Fee calculation result: type={transaction_type} amount={amount_cents} user={user_id} "
            f"base_rate={row.base_rate} user_discount={user_discount} volume_discount={volume_discount} "
            f"promo_discount={promotional_discount} fee={fee}"
        )
        return breakdown

    def _discount_lookups(
        self,
        transaction_type: Optional[str],
        user_id: str,
        now: datetime
    ) -> Dict[str, Callable[[], Decimal]]:
        return {
            USER_DISCOUNT: lambda: self._user_discount_rate(user_id),
            VOLUME_DISCOUNT: lambda: self._volume_discount_rate(user_id, now),
            GLOBAL_PROMOTION: lambda: clamp_rate(
                self.promotion_repository.get_active_discount_for_type(transaction_type, now)
            ),
            USER_PROMOTION: lambda: clamp_rate(
                self.promotion_repository.get_active_discount_for_type(transaction_type, now, user_id=user_id)
            ),
        }

    def _user_discount_rate(self, user_id: str) -> Decimal:
        """Custom rate, else partner role, else subscription tier"""
        info = self.user_tier_repository.get_user_tier_and_discount(user_id)
        tier_discounts = self.configuration.tier_discounts

        if info.custom_discount_rate is not None:
            return clamp_rate(info.custom_discount_rate)
        if info.special_role == UserTier.PARTNER.value:
            return tier_discounts.get(UserTier.PARTNER.value, Decimal('0'))
        return tier_discounts.get(UserTier(info.tier).value, Decimal('0'))

    def _volume_discount_rate(self, user_id: str, now: datetime) -> Decimal:
        window_start = now - timedelta(days=self.configuration.volume_window_days)
        volume_cents = self.volume_repository.get_trailing_volume_cents(user_id, window_start)
        return self.configuration.volume_discount_for(volume_cents)

    def _run_lookups(self, lookups: Dict[str, Callable[[], Decimal]]) -> Dict[str, LookupResult]:
        if self.executor is None:
            return {source: self._resolve(source, lookup) for source, lookup in lookups.items()}

        pending = {}
        results = {}
        for source, lookup in lookups.items():
            try:
                pending[source] = self.executor.submit(_run_in_worker, lookup)
            except Exception as e:
                logger.error(f"Could not schedule {source} lookup: {str(e)}")
                results[source] = LookupResult.failed(source, str(e))

        timeout = self.configuration.lookup_timeout_seconds
        deadline = None if timeout is None else time.monotonic() + timeout
        for source, future in pending.items():
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            try:
                results[source] = LookupResult.ok(source, future.result(timeout=remaining))
            except futures.TimeoutError:
                future.cancel()
                logger.warning(f"{source} lookup timed out after {timeout}s, applying no discount")
                results[source] = LookupResult.failed(source, "timed out")
            except Exception as e:
                logger.error(f"Error resolving {source}: {str(e)}")
                results[source] = LookupResult.failed(source, str(e))
        return results

    def _resolve(self, source: str, lookup: Callable[[], Decimal]) -> LookupResult:
        try:
            return LookupResult.ok(source, lookup())
        except Exception as e:
            logger.error(f"Error resolving {source}: {str(e)}")
            return LookupResult.failed(source, str(e))

    def _safe_minimum_fee(self, transaction_type: Optional[str]) -> int:
        try:
            row = self.configuration.get_schedule_row(transaction_type)
            if row is not None:
                return row.min_fee_cents
        except Exception as e:
            logger.error(f"Error resolving minimum fee for {transaction_type}: {str(e)}")
        return self.configuration.fallback_minimum_fee_cents
