from django.urls import path
from .views import (
    customer_list_create, customer_detail,
    customer_address_list_create, customer_address_detail,
)

urlpatterns = [
    # Customer endpoints
    path('customers/', customer_list_create, name='customer-list-create'),
    path('customers/<int:pk>/', customer_detail, name='customer-detail'),
    path('customers/<int:customer_pk>/addresses/', customer_address_list_create, name='customer-address-list-create'),
    path('customers/<int:customer_pk>/addresses/<int:pk>/', customer_address_detail, name='customer-address-detail'),
]
