"""Attendance & deposit-refund engine.

This package is organized by feature modules (tokens, attendance, refunds, ...)
with a thin Flask controller layer and service/repository layers underneath.
"""
