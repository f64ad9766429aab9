"""
TaxDesk NG - Routers Package

FastAPI route handlers.

Routers:
- tax: Tax summaries, rate tables, remittances and WHT deductions
- income: Personal income entries and PIT reliefs
"""
