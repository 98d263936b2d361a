"""
services/ - Business Logic Layer
=================================
Services orchestrate repositories and enforce rules that span entities.
"""
