import pytest

from apps.fees.models import FeeTransaction
from apps.fees.services.fee_history_service import FeeHistoryService


@pytest.fixture
def history_service():
    return FeeHistoryService()


@pytest.mark.django_db
class TestFeeHistory:
    def test_orders_by_fee_then_newest(self, user, make_transaction, history_service):
        older = make_transaction(user, 10000, fee_cents=500, days_ago=5)
        newer = make_transaction(user, 20000, fee_cents=500, days_ago=1)
        largest = make_transaction(user, 50000, fee_cents=1000, days_ago=20, transaction_type='hire_success_fee')
        make_transaction(user, 30000, fee_cents=0)

        history = history_service.get_user_fee_history(str(user.pk))

        assert [entry.id for entry in history] == [largest.id, newer.id, older.id]
        assert history[0].transaction_type == 'hire_success_fee'
        assert history[0].fee_percentage == pytest.approx(0.02)

    def test_respects_limit(self, user, make_transaction, history_service):
        for fee in range(1, 6):
            make_transaction(user, 10000, fee_cents=fee * 100)

        history = history_service.get_user_fee_history(str(user.pk), limit=2)

        assert [entry.fee_cents for entry in history] == [500, 400]

    def test_excludes_other_users(self, user, other_user, make_transaction, history_service):
        make_transaction(other_user, 10000, fee_cents=500)

        assert history_service.get_user_fee_history(str(user.pk)) == []

    @pytest.mark.parametrize('user_id', [None, ''])
    def test_missing_user_returns_empty_history(self, history_service, user_id):
        assert history_service.get_user_fee_history(user_id) == []


@pytest.mark.django_db
class TestFeeStatistics:
    def test_aggregates_completed_fee_bearing_transactions(self, user, make_transaction, history_service):
        make_transaction(user, 10000, fee_cents=500)
        make_transaction(user, 30000, fee_cents=1500)
        make_transaction(user, 40000, fee_cents=2000, status=FeeTransaction.TransactionStatus.FAILED)
        make_transaction(user, 40000, fee_cents=0)

        statistics = history_service.get_user_fee_statistics(str(user.pk))

        assert statistics.total_fees_cents == 2000
        assert statistics.total_transactions == 2
        assert statistics.total_transaction_amount_cents == 40000
        assert statistics.average_fee_percentage == pytest.approx(0.05)

    def test_user_without_transactions_has_zeroed_statistics(self, user, history_service):
        statistics = history_service.get_user_fee_statistics(str(user.pk))

        assert statistics.total_fees_cents == 0
        assert statistics.total_transactions == 0
        assert statistics.average_fee_percentage == 0.0

    def test_missing_user_has_zeroed_statistics(self, history_service):
        assert history_service.get_user_fee_statistics(None).total_transactions == 0
