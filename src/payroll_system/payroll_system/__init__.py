"""Payroll System package.

Small-business attendance and payroll backend, organized by feature modules
(employees, schedules, rules, attendance, payroll, leaves) with a thin Flask
controller layer over service/repository layers.
"""
