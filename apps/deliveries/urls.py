from rest_framework.routers import DefaultRouter

from apps.deliveries.views import DeliveryViewSet, TruckViewSet

router = DefaultRouter()
router.register("deliveries", DeliveryViewSet, basename="delivery")
router.register("trucks", TruckViewSet, basename="truck")

urlpatterns = router.urls
