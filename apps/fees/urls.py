from django.urls import path
from . import views

app_name = 'fees'

urlpatterns = [
    path('quote/', views.fee_quote, name='fee_quote'),
    path('history/', views.fee_history, name='fee_history'),
    path('statistics/', views.fee_statistics, name='fee_statistics'),
]
