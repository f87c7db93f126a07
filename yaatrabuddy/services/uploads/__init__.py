# yaatrabuddy/services/uploads/__init__.py
"""
Загрузка аватаров и студенческих билетов.
"""
