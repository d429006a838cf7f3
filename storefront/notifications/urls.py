from django.urls import path
from .views import alert_list_create, alert_detail, template_list_create, template_detail

urlpatterns = [
    path('alerts/', alert_list_create, name='alert-list-create'),
    path('alerts/<int:pk>/', alert_detail, name='alert-detail'),
    path('templates/', template_list_create, name='template-list-create'),
    path('templates/<int:pk>/', template_detail, name='template-detail'),
]
