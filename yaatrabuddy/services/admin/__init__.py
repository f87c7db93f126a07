# yaatrabuddy/services/admin/__init__.py
