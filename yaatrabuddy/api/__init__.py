# yaatrabuddy/api/__init__.py
"""
HTTP-слой: приложение FastAPI, зависимости и обработчики ошибок.
Приложение импортируется явно: yaatrabuddy.api.app:app
"""
