"""
                FoodExpress Ordering API

Backend for the FoodExpress food-ordering web app: restaurants,
menus, user profiles, checkout and time-based order tracking.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
