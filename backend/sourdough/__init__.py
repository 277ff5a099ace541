"""
Happy Sourdough - Backend API
Storefront and back-office services for an artisan bakery
"""
__version__ = "1.0.0"
