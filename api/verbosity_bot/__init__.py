"""Приёмник callback-запросов бота Verbosity (FastAPI)."""
