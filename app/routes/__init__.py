"""
API routers, one module per collection.
"""
