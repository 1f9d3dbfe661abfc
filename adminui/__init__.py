"""
Server Admin Panel.

- backend/: FastAPI API, database, remote host access, configuration
- telegram/: Telegram bot integration (aiogram v3)
"""
