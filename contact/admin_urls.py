"""
Contact Admin URL Configuration

Bearer-token protected endpoints for reading stored messages.
"""
from django.urls import path
from .views import AdminMessageListView

app_name = 'contact_admin'

urlpatterns = [
    path('messages', AdminMessageListView.as_view(), name='message-list'),
]
