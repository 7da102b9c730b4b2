"""
db/ - Database Layer
====================
PostgreSQL connection pool, transaction helper and schema initialization.
This layer is the lowest in the architecture and has no dependencies on other layers.
"""
