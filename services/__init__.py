"""
services/ - Business Logic Layer
================================
The subscription calculator and the services built on it. Services
depend on repositories for storage and never on the command line.
"""
