"""URL configuration for the linkgap app."""

from django.urls import path

from . import views

app_name = 'linkgap'

urlpatterns = [
    path('analyze/', views.analyze, name='analyze'),
    path('health/', views.health, name='health'),
]
