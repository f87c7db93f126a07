# yaatrabuddy/shared/__init__.py
"""
Общие модели, разделяемые сервисами.
"""
