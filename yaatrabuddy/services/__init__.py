# yaatrabuddy/services/__init__.py
"""
Сервисы приложения.

- auth: учётные записи, токены, сброс пароля
- rpc: закрытый каталог хранимых процедур
- payments: заказы Razorpay и расчёт по callback
- data: ресурсные CRUD-роутеры под RLS
- uploads: загрузка аватаров и студенческих билетов
- admin: административные операции
"""
