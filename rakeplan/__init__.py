"""
rakeplan - Rake Forecasting and Scheduling Engine

Forecasts route demand from historical series and assigns rakes to routes
with a greedy, availability-aware scheduler.
"""

__version__ = "1.0.0"
__author__ = "Rakeplan Team"
