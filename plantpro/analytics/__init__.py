"""
Dashboard analytics for PlantPro

- metrics: summary arithmetic, alerts and zone roll-ups
- trends: production and health time series
- query_builder: filtered and paginated plant lot statements
"""
