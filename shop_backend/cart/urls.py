# cart/urls.py

from django.urls import path

from cart.views import CartLineDetailView, CartLinesView, CartView

app_name = "cart"

urlpatterns = [
    path("", CartView.as_view(), name="cart"),
    path("lines/", CartLinesView.as_view(), name="cart-lines"),
    path("lines/<uuid:line_id>/", CartLineDetailView.as_view(), name="cart-line-detail"),
]
