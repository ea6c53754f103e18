"""Root URL configuration for the linkgap_tool project."""

from django.urls import include, path

urlpatterns = [
    path('', include('linkgap.urls')),
]
