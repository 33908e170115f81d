from django.contrib import admin

from apps.purchases.models import Purchase


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = ("item_name", "quantity", "cost", "purchase_date", "created_by", "created_at")
    list_filter = ("purchase_date", "created_by")
    search_fields = ("item_name", "created_by__email")
    autocomplete_fields = ("created_by",)
