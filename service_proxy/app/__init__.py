"""
Reverse proxy application package.
"""
