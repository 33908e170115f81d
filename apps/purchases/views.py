import logging

from rest_framework import mixins, viewsets

from apps.audit.models import AuditAction
from apps.audit.services import record_audit
from apps.common.mixins import QueryGenerationMixin
from apps.common.permissions import RolePermission
from apps.purchases.models import Purchase
from apps.purchases.serializers import PurchaseSerializer

logger = logging.getLogger(__name__)


class PurchaseViewSet(
    QueryGenerationMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Purchase.objects.select_related("created_by").order_by("-purchase_date", "-created_at")
    serializer_class = PurchaseSerializer
    permission_classes = [RolePermission]
    pagination_class = None
    capability_map = {
        "list": ["purchases.view"],
        "retrieve": ["purchases.view"],
        "create": ["purchases.create"],
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        query = self.request.query_params.get("q", "").strip()
        if query:
            queryset = queryset.filter(item_name__icontains=query)
        return queryset

    def perform_create(self, serializer):
        purchase = serializer.save()
        record_audit(
            actor=self.request.user,
            action=AuditAction.PURCHASE_CREATE,
            entity_type="purchase",
            entity_id=purchase.id,
            payload={
                "item_name": purchase.item_name,
                "quantity": str(purchase.quantity),
                "cost": str(purchase.cost),
                "purchase_date": str(purchase.purchase_date),
            },
        )
        logger.info("Purchase %s recorded: %s x%s for %s", purchase.id, purchase.item_name, purchase.quantity, purchase.cost)
