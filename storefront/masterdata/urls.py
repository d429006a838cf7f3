from django.urls import path
from .views import master_data_kinds, master_data_list_create, master_data_detail

urlpatterns = [
    path('master-data/', master_data_kinds, name='master-data-kinds'),
    path('master-data/<slug:kind>/', master_data_list_create, name='master-data-list-create'),
    path('master-data/<slug:kind>/<int:pk>/', master_data_detail, name='master-data-detail'),
]
