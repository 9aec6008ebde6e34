# payments/urls.py

from django.urls import path

from payments.views import PaymentCallbackView

urlpatterns = [
    path("<str:provider>/callback/", PaymentCallbackView.as_view(), name="payment-callback"),
]
