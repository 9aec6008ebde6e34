# discounts/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from discounts.views import DiscountAdminViewSet, DiscountValidateView

app_name = "discounts"

router = SimpleRouter()
router.register(r"admin", DiscountAdminViewSet, basename="discount-admin")

urlpatterns = [
    path("validate/", DiscountValidateView.as_view(), name="discount-validate"),
    path("", include(router.urls)),
]
