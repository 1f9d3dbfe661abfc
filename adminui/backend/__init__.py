"""
Backend.

- api/: HTTP routes
- core/: configuration, logging, security, errors
- models/, repositories/, schemas/, services/: layered data and business logic
- remote/: SSH executor and the whitelisted command catalogue
"""
