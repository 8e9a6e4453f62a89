from django.apps import AppConfig


class TripCostingConfig(AppConfig):
    name = "trip_costing"
    verbose_name = "Trip cost estimation"
