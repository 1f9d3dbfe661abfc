"""
Core Infrastructure.

Configuration, logging, database, security, rate limiting and the
application exception taxonomy.
"""
