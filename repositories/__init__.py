"""
repositories/ - Data Access Layer
==================================
One repository per table. Repositories run the SQL and turn rows
into domain model objects; they hold no business rules.
"""
