from django.urls import path

from trip_costing import views

urlpatterns = [
    path("api/v1/health", views.health_view, name="health"),
    path("api/v1/trip-expense", views.trip_expense_view, name="trip-expense"),
]
