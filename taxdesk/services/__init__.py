"""
TaxDesk NG - Services Package

Tax tables, aggregation, calculators and the summary engine.
"""
