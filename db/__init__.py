"""
db/ - Database Layer
====================
Handles PostgreSQL connections, transactions, schema initialization,
and classification of errors raised by the store.
This layer is the lowest in the architecture and has no dependencies on other layers.
"""
