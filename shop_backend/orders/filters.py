# orders/filters.py

import django_filters

from orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Order.STATUS_CHOICES)
    paymentMethod = django_filters.CharFilter(field_name="payment_method", lookup_expr="iexact")
    email = django_filters.CharFilter(field_name="user__email", lookup_expr="icontains")
    orderNumber = django_filters.CharFilter(field_name="order_number", lookup_expr="icontains")
    createdFrom = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    createdTo = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = Order
        fields = ["status", "paymentMethod", "email", "orderNumber", "createdFrom", "createdTo"]
