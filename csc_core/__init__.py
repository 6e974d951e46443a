"""
CSC ERP core - persistence, sync and business rules for a Common Service
Centre back office.
"""

__version__ = "1.0.0"
