from django.contrib import admin
from .models import FeeTransaction, Promotion, UserFeeProfile, UserPromotion


@admin.register(UserFeeProfile)
class UserFeeProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "subscription_plan", "subscription_status", "special_role", "custom_discount_rate", "tier_display")
    list_filter = ("subscription_status", "special_role")
    search_fields = ("user__username", "user__email", "subscription_plan")
    readonly_fields = ("fee_settings_updated_at", "fee_settings_updated_by", "created_at", "updated_at")

    def tier_display(self, obj):
        return obj.tier.value
    tier_display.short_description = "Tier"


@admin.register(FeeTransaction)
class FeeTransactionAdmin(admin.ModelAdmin):
    list_display = ("user", "transaction_type", "amount_usd", "fee_usd", "status", "timestamp")
    list_filter = ("transaction_type", "status")
    search_fields = ("user__username", "external_reference")
    date_hierarchy = "timestamp"

    def amount_usd(self, obj):
        return f"${obj.amount_cents / 100:.2f}"
    amount_usd.short_description = "Amount (USD)"

    def fee_usd(self, obj):
        return f"${obj.fee_cents / 100:.2f}"
    fee_usd.short_description = "Fee (USD)"


@admin.register(Promotion)
class PromotionAdmin(admin.ModelAdmin):
    list_display = ("name", "discount_rate", "start_date", "end_date", "active")
    list_filter = ("active",)
    search_fields = ("name",)


@admin.register(UserPromotion)
class UserPromotionAdmin(admin.ModelAdmin):
    list_display = ("name", "user", "discount_rate", "start_date", "end_date", "active")
    list_filter = ("active",)
    search_fields = ("name", "user__username")
