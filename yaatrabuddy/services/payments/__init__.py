# yaatrabuddy/services/payments/__init__.py
"""
Платежи через Razorpay.
"""
