"""
                        Services Module

Business logic shared by the API routes.

Services:
    - order_status: Time-based order status policy (pure functions)
    - orders: Order persistence and status changes
"""
