import logging
from typing import Optional, Tuple

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from apps.common.data_transfer_objects import TransactionType

from ..interfaces import FeeCalculationServiceInterface, TransactionLedgerServiceInterface
from ..models import FeeTransaction

logger = logging.getLogger(__name__)


class TransactionLedgerService(TransactionLedgerServiceInterface):
    """
    Persists completed fee-bearing transactions. Completed transactions are
    what the volume discount aggregates over.
    """

    def __init__(self, fee_calculation_service: FeeCalculationServiceInterface):
        self.fee_calculation_service = fee_calculation_service

    def record_completed_transaction(
        self,
        user_id: str,
        transaction_type: str,
        amount_cents: int,
        external_reference: Optional[str] = None,
        currency: str = "usd"
    ) -> Tuple[bool, str, Optional[str]]:
        if not amount_cents or amount_cents <= 0:
            return False, "Amount must be positive", None

        transaction_type = transaction_type or TransactionType.DEFAULT.value

        if external_reference:
            existing = FeeTransaction.objects.filter(external_reference=external_reference).first()
            if existing:
                logger.info(f"Transaction {external_reference} already recorded as {existing.id}")
                return True, "Transaction already recorded", existing.id

        try:
            user = get_user_model().objects.get(pk=user_id)
        except (get_user_model().DoesNotExist, ValueError):
            return False, "User not found", None

        # Fee is computed before the new record exists so it does not count toward its own volume
        fee_cents = self.fee_calculation_service.calculate_fee(transaction_type, amount_cents, str(user.pk))

        try:
            with transaction.atomic():
                fee_transaction = FeeTransaction.objects.create(
                    user=user,
                    transaction_type=transaction_type,
                    amount_cents=amount_cents,
                    fee_cents=fee_cents,
                    net_amount_cents=amount_cents - fee_cents,
                    currency=currency,
                    status=FeeTransaction.TransactionStatus.COMPLETED,
                    external_reference=external_reference or None
                )
            return True, "Transaction recorded", fee_transaction.id

        except IntegrityError:
            # Lost a race with a concurrent insert of the same reference
            if external_reference:
                existing = FeeTransaction.objects.filter(external_reference=external_reference).first()
                if existing:
                    return True, "Transaction already recorded", existing.id
            logger.error(f"Integrity error recording transaction for user {user_id}")
            return False, "Could not record transaction", None
        except Exception as e:
            logger.error(f"Error recording transaction for user {user_id}: {str(e)}")
            return False, str(e), None

    def update_transaction_status(self, transaction_id: str, status: str) -> Tuple[bool, str]:
        if status not in FeeTransaction.TransactionStatus.values:
            return False, f"Invalid status: {status}"

        try:
            with transaction.atomic():
                fee_transaction = FeeTransaction.objects.select_for_update().get(id=transaction_id)
                fee_transaction.status = status
                fee_transaction.save(update_fields=['status', 'updated_at'])
            return True, f"Transaction marked {status}"

        except FeeTransaction.DoesNotExist:
            return False, "Transaction not found"
        except Exception as e:
            logger.error(f"Error updating transaction {transaction_id}: {str(e)}")
            return False, str(e)
