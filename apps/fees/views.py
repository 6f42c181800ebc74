import logging

from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_GET

from .factory import get_fee_calculation_service
from .forms import FeeHistoryForm, FeeQuoteForm
from .services.fee_history_service import FeeHistoryService

logger = logging.getLogger(__name__)


@require_GET
def fee_quote(request):
    """Fee the current user would pay; anonymous requests get the undiscounted fee"""
    form = FeeQuoteForm(request.GET)
    if not form.is_valid():
        logger.warning(f"Invalid fee quote request: {form.errors.as_json()}")
        return JsonResponse({"errors": form.errors.get_json_data()}, status=400)

    user_id = str(request.user.pk) if request.user.is_authenticated else None
    breakdown = get_fee_calculation_service().get_fee_breakdown(
        form.cleaned_data['transaction_type'] or None,
        form.cleaned_data['amount_cents'],
        user_id
    )
    return JsonResponse(breakdown.model_dump(mode='json'))


@login_required
@require_GET
def fee_history(request):
    form = FeeHistoryForm(request.GET)
    if not form.is_valid():
        return JsonResponse({"errors": form.errors.get_json_data()}, status=400)

    limit = form.cleaned_data['limit'] or FeeHistoryService.DEFAULT_HISTORY_LIMIT
    history = FeeHistoryService().get_user_fee_history(str(request.user.pk), limit=limit)
    return JsonResponse([entry.model_dump(mode='json') for entry in history], safe=False)


@login_required
@require_GET
def fee_statistics(request):
    statistics = FeeHistoryService().get_user_fee_statistics(str(request.user.pk))
    return JsonResponse(statistics.model_dump(mode='json'))
