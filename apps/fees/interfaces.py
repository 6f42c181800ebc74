from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional, Tuple

from apps.common.data_transfer_objects import FeeBreakdown, FeeHistoryEntry, FeeStatistics


class FeeCalculationServiceInterface(ABC):
    @abstractmethod
    def calculate_fee(
        self,
        transaction_type: Optional[str],
        amount_cents: Optional[int],
        user_id: Optional[str] = None
    ) -> int:
        """
        Calculate the fee charged for a transaction

        Args:
            transaction_type: Fee schedule key; unknown or missing types use the default row
            amount_cents: Transaction amount in cents; non-positive amounts carry no fee
            user_id: Optional user whose discounts apply

        Returns:
            Fee in cents. Never raises.
        """
        pass

    @abstractmethod
    def get_fee_breakdown(
        self,
        transaction_type: Optional[str],
        amount_cents: Optional[int],
        user_id: Optional[str] = None
    ) -> FeeBreakdown:
        """Same calculation as calculate_fee, with every intermediate value"""
        pass


class FeeHistoryServiceInterface(ABC):
    @abstractmethod
    def get_user_fee_history(self, user_id: Optional[str], limit: int = 20) -> List[FeeHistoryEntry]:
        """Fee-bearing transactions of a user, largest fee first"""
        pass

    @abstractmethod
    def get_user_fee_statistics(self, user_id: Optional[str]) -> FeeStatistics:
        """Aggregated fees over the user's completed transactions"""
        pass


class FeeConfigurationServiceInterface(ABC):
    @abstractmethod
    def apply_custom_fee_configuration(
        self,
        user_id: str,
        discount_rate: Decimal,
        updated_by: Optional[str] = None,
        reason: str = ""
    ) -> Tuple[bool, str]:
        """
        Give a user a custom discount rate overriding their tier discount

        Returns:
            Tuple of (success: bool, message: str)
        """
        pass

    @abstractmethod
    def clear_custom_fee_configuration(
        self,
        user_id: str,
        updated_by: Optional[str] = None
    ) -> Tuple[bool, str]:
        """Remove a user's custom discount rate"""
        pass


class TransactionLedgerServiceInterface(ABC):
    @abstractmethod
    def record_completed_transaction(
        self,
        user_id: str,
        transaction_type: str,
        amount_cents: int,
        external_reference: Optional[str] = None,
        currency: str = "usd"
    ) -> Tuple[bool, str, Optional[str]]:
        """
        Record a completed fee-bearing transaction with its computed fee

        Returns:
            Tuple of (success: bool, message: str, transaction_id: Optional[str])
        """
        pass

    @abstractmethod
    def update_transaction_status(self, transaction_id: str, status: str) -> Tuple[bool, str]:
        """Move a transaction to another status"""
        pass
