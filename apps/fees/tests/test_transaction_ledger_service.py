import pytest
from django.db import IntegrityError

from apps.fees.factory import get_fee_calculation_service
from apps.fees.models import FeeTransaction
from apps.fees.services.transaction_ledger_service import TransactionLedgerService


@pytest.fixture
def ledger_service():
    return TransactionLedgerService(fee_calculation_service=get_fee_calculation_service())


@pytest.mark.django_db
class TestRecordCompletedTransaction:
    def test_records_fee_and_net_amount(self, user, ledger_service):
        success, message, transaction_id = ledger_service.record_completed_transaction(
            str(user.pk), 'verification_fee', 1000, external_reference='pi_123'
        )

        assert success, message
        recorded = FeeTransaction.objects.get(id=transaction_id)
        assert recorded.fee_cents == 100
        assert recorded.net_amount_cents == 900
        assert recorded.status == FeeTransaction.TransactionStatus.COMPLETED
        assert recorded.currency == 'usd'

    def test_applies_user_discounts(self, user, premium_profile, ledger_service):
        _, _, transaction_id = ledger_service.record_completed_transaction(str(user.pk), 'verification_fee', 1000)

        assert FeeTransaction.objects.get(id=transaction_id).fee_cents == 90

    def test_is_idempotent_on_external_reference(self, user, ledger_service):
        _, _, first_id = ledger_service.record_completed_transaction(str(user.pk), 'job_posting_fee', 20000, external_reference='pi_dup')
        success, message, second_id = ledger_service.record_completed_transaction(str(user.pk), 'job_posting_fee', 20000, external_reference='pi_dup')

        assert success
        assert message == "Transaction already recorded"
        assert second_id == first_id
        assert FeeTransaction.objects.filter(external_reference='pi_dup').count() == 1

    def test_uses_injected_calculator(self, mocker, user):
        calculator = mocker.Mock()
        calculator.calculate_fee.return_value = 321
        service = TransactionLedgerService(fee_calculation_service=calculator)

        _, _, transaction_id = service.record_completed_transaction(str(user.pk), 'hire_success_fee', 500000)

        calculator.calculate_fee.assert_called_once_with('hire_success_fee', 500000, str(user.pk))
        assert FeeTransaction.objects.get(id=transaction_id).net_amount_cents == 500000 - 321

    def test_recorded_volume_unlocks_volume_discount(self, user, ledger_service):
        ledger_service.record_completed_transaction(str(user.pk), 'subscription', 1000000)

        breakdown = get_fee_calculation_service().get_fee_breakdown('job_posting_fee', 20000, str(user.pk))

        assert breakdown.volume_discount_rate > 0
        assert breakdown.fee_cents == 950

    def test_missing_type_is_stored_as_default(self, user, other_user, make_transaction, ledger_service):
        other_transaction = make_transaction(other_user, 20000, fee_cents=1000)

        success, message, transaction_id = ledger_service.record_completed_transaction(str(user.pk), None, 20000)

        assert success, message
        assert transaction_id != other_transaction.id
        recorded = FeeTransaction.objects.get(id=transaction_id)
        assert recorded.user == user
        assert recorded.transaction_type == 'default'
        assert recorded.fee_cents == 1000

    def test_concurrent_insert_of_same_reference_returns_existing(self, mocker, user):
        existing = FeeTransaction.objects.create(
            user=user, transaction_type='job_posting_fee', amount_cents=20000, fee_cents=1000,
            net_amount_cents=19000, status=FeeTransaction.TransactionStatus.COMPLETED,
            external_reference='pi_race'
        )
        calculator = mocker.Mock()
        calculator.calculate_fee.return_value = 1000
        service = TransactionLedgerService(fee_calculation_service=calculator)
        # The first lookup runs before the competing insert becomes visible
        real_filter = FeeTransaction.objects.filter
        mocker.patch.object(
            FeeTransaction.objects, 'filter',
            side_effect=[FeeTransaction.objects.none(), real_filter(external_reference='pi_race')]
        )
        mocker.patch.object(FeeTransaction.objects, 'create', side_effect=IntegrityError)

        result = service.record_completed_transaction(str(user.pk), 'job_posting_fee', 20000, external_reference='pi_race')

        assert result == (True, "Transaction already recorded", existing.id)

    def test_integrity_error_without_reference_never_returns_another_record(
        self, mocker, user, other_user, make_transaction
    ):
        make_transaction(other_user, 20000, fee_cents=1000)
        calculator = mocker.Mock()
        calculator.calculate_fee.return_value = 1000
        service = TransactionLedgerService(fee_calculation_service=calculator)
        mocker.patch.object(FeeTransaction.objects, 'create', side_effect=IntegrityError)

        result = service.record_completed_transaction(str(user.pk), 'job_posting_fee', 20000)

        assert result == (False, "Could not record transaction", None)

    @pytest.mark.parametrize('amount_cents', [0, -500, None])
    def test_rejects_non_positive_amounts(self, user, ledger_service, amount_cents):
        assert ledger_service.record_completed_transaction(str(user.pk), 'job_posting_fee', amount_cents) == (
            False, "Amount must be positive", None
        )

    @pytest.mark.parametrize('user_id', ['999999', 'not-a-user'])
    def test_unknown_user(self, ledger_service, user_id):
        assert ledger_service.record_completed_transaction(user_id, 'job_posting_fee', 20000) == (
            False, "User not found", None
        )


@pytest.mark.django_db
class TestUpdateTransactionStatus:
    def test_failed_transaction_leaves_volume(self, user, make_transaction, ledger_service):
        fee_transaction = make_transaction(user, 1000000)

        success, _ = ledger_service.update_transaction_status(fee_transaction.id, FeeTransaction.TransactionStatus.FAILED)

        assert success
        fee_transaction.refresh_from_db()
        assert fee_transaction.status == FeeTransaction.TransactionStatus.FAILED
        assert get_fee_calculation_service().calculate_fee('job_posting_fee', 20000, str(user.pk)) == 1000

    def test_rejects_unknown_status(self, user, make_transaction, ledger_service):
        fee_transaction = make_transaction(user, 1000)

        assert ledger_service.update_transaction_status(fee_transaction.id, 'settled') == (False, "Invalid status: settled")

    def test_missing_transaction(self, ledger_service):
        assert ledger_service.update_transaction_status('missing', 'completed') == (False, "Transaction not found")
