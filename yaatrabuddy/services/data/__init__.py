# yaatrabuddy/services/data/__init__.py
"""
Ресурсы /data: профили, поездки, заявки, чаты, уведомления, справочники.
"""
