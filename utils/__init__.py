"""
utils/ - Shared Utilities
=========================
"""
