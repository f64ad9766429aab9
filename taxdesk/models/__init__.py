"""
TaxDesk NG - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from taxdesk.models.base import BaseModel, TimestampMixin
from taxdesk.models.entity import TaxEntity, EntityType, CompanyClassification
from taxdesk.models.income import IncomeRecord, EmploymentDeductions
from taxdesk.models.expense import ExpenseRecord
from taxdesk.models.invoice import Invoice, InvoiceLineItem, InvoiceStatus
from taxdesk.models.wht import WHTRecord, WHTTransactionType
from taxdesk.models.payroll import PayrollEntry
from taxdesk.models.tax import TaxType, TaxRemittance, RemittanceStatus, TaxSummary

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "TaxEntity",
    "EntityType",
    "CompanyClassification",
    "IncomeRecord",
    "EmploymentDeductions",
    "ExpenseRecord",
    "Invoice",
    "InvoiceLineItem",
    "InvoiceStatus",
    "WHTRecord",
    "WHTTransactionType",
    "PayrollEntry",
    "TaxType",
    "TaxRemittance",
    "RemittanceStatus",
    "TaxSummary",
]
