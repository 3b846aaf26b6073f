"""
API route modules, one router per area.
"""
