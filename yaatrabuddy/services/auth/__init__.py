# yaatrabuddy/services/auth/__init__.py
"""
Аутентификация: токены, учётные записи, сброс пароля.
"""
