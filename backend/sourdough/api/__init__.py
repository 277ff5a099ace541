"""
API Routers (mounted under /api/v1 in sourdough.main)
"""
