import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from ..interfaces import FeeConfigurationServiceInterface
from ..models import UserFeeProfile

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


class FeeConfigurationService(FeeConfigurationServiceInterface):
    @transaction.atomic
    def apply_custom_fee_configuration(
        self,
        user_id: str,
        discount_rate: Decimal,
        updated_by: Optional[str] = None,
        reason: str = ""
    ) -> Tuple[bool, str]:
        if not user_id:
            return False, "User is required"
        if discount_rate is None:
            return False, "Discount rate is required"

        try:
            rate = Decimal(str(discount_rate))
        except InvalidOperation:
            return False, "Discount rate must be a number"

        if not rate.is_finite() or not Decimal('0') <= rate <= Decimal('1'):
            return False, "Discount rate must be between 0 and 1"

        try:
            user = get_user_model().objects.get(pk=user_id)
            profile, created = UserFeeProfile.objects.select_for_update().get_or_create(user=user)
            profile.custom_discount_rate = rate
            profile.fee_settings_updated_at = timezone.now()
            profile.fee_settings_updated_by = updated_by or SYSTEM_ACTOR
            profile.fee_settings_reason = reason
            profile.save()

            logger.info(f"Custom discount rate {rate} applied to user {user_id} by {profile.fee_settings_updated_by}")
            return True, "Custom fee configuration applied"

        except (get_user_model().DoesNotExist, ValueError):
            return False, "User not found"
        except Exception as e:
            logger.error(f"Error applying custom fee configuration for user {user_id}: {str(e)}")
            return False, str(e)

    @transaction.atomic
    def clear_custom_fee_configuration(
        self,
        user_id: str,
        updated_by: Optional[str] = None
    ) -> Tuple[bool, str]:
        try:
            profile = UserFeeProfile.objects.select_for_update().get(user_id=user_id)
            profile.custom_discount_rate = None
            profile.fee_settings_updated_at = timezone.now()
            profile.fee_settings_updated_by = updated_by or SYSTEM_ACTOR
            profile.fee_settings_reason = ""
            profile.save()
            return True, "Custom fee configuration cleared"

        except UserFeeProfile.DoesNotExist:
            return False, "No fee profile for user"
        except Exception as e:
            logger.error(f"Error clearing custom fee configuration for user {user_id}: {str(e)}")
            return False, str(e)
