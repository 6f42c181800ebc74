import logging
from typing import List, Optional

from django.db.models import Count, Sum

from apps.common.data_transfer_objects import FeeHistoryEntry, FeeStatistics
from ..interfaces import FeeHistoryServiceInterface
from ..models import FeeTransaction

logger = logging.getLogger(__name__)


class FeeHistoryService(FeeHistoryServiceInterface):
    DEFAULT_HISTORY_LIMIT = 20

    def get_user_fee_history(self, user_id: Optional[str], limit: int = DEFAULT_HISTORY_LIMIT) -> List[FeeHistoryEntry]:
        """Fee-bearing transactions, largest fee first, newest first among equal fees"""
        if not user_id:
            return []

        try:
            transactions = (
                FeeTransaction.objects
                .filter(user_id=user_id, fee_cents__gt=0)
                .order_by('-fee_cents', '-timestamp')[:max(0, limit)]
            )
            return [
                FeeHistoryEntry(
                    id=fee_transaction.id,
                    amount_cents=fee_transaction.amount_cents,
                    fee_cents=fee_transaction.fee_cents,
                    fee_percentage=fee_transaction.fee_percentage,
                    transaction_type=fee_transaction.transaction_type,
                    timestamp=fee_transaction.timestamp
                )
                for fee_transaction in transactions
            ]

        except Exception as e:
            logger.error(f"Error fetching fee history for user {user_id}: {str(e)}")
            return []

    def get_user_fee_statistics(self, user_id: Optional[str]) -> FeeStatistics:
        if not user_id:
            return FeeStatistics()

        try:
            totals = FeeTransaction.objects.filter(
                user_id=user_id,
                status=FeeTransaction.TransactionStatus.COMPLETED,
                fee_cents__gt=0,
                amount_cents__gt=0
            ).aggregate(
                total_fees=Sum('fee_cents'),
                total_amount=Sum('amount_cents'),
                count=Count('id')
            )

            total_fees = totals['total_fees'] or 0
            total_amount = totals['total_amount'] or 0
            return FeeStatistics(
                total_fees_cents=total_fees,
                total_transactions=totals['count'],
                total_transaction_amount_cents=total_amount,
                average_fee_percentage=total_fees / total_amount if total_amount else 0.0
            )

        except Exception as e:
            logger.error(f"Error calculating fee statistics for user {user_id}: {str(e)}")
            return FeeStatistics()
