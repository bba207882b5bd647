"""
Contact URL Configuration
"""
from django.urls import path
from .views import ContactSubmitView

app_name = 'contact'

# Public URLs (no auth required)
urlpatterns = [
    path('', ContactSubmitView.as_view(), name='submit'),
]
