"""
Core - configuration, database clients, auth, rate limiting and errors
"""
