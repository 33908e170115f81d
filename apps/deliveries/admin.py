from django.contrib import admin

from apps.deliveries.models import Delivery, Payment, Truck


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    readonly_fields = ("payment_amount", "payment_date", "created_by", "created_at")
    can_delete = False


@admin.register(Truck)
class TruckAdmin(admin.ModelAdmin):
    list_display = ("truck_name", "driver_name", "license_number", "contact_number", "created_at")
    search_fields = ("truck_name", "driver_name", "license_number")


@admin.register(Delivery)
class DeliveryAdmin(admin.ModelAdmin):
    list_display = ("receiver_name", "delivery_date", "sacks_delivered", "total_amount", "amount_paid", "status", "created_by")
    list_filter = ("status", "delivery_date")
    search_fields = ("receiver_name", "receiver_phone", "truck__driver_name", "truck__truck_name")
    readonly_fields = ("total_amount", "amount_paid", "status", "created_at")
    autocomplete_fields = ("truck", "created_by")
    inlines = [PaymentInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("delivery", "payment_amount", "payment_date", "created_by", "created_at")
    list_filter = ("payment_date",)
    search_fields = ("delivery__receiver_name",)
    autocomplete_fields = ("delivery", "created_by")
