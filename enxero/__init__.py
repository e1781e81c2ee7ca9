"""Enxero Platform — multi-tenant HR and payroll backend."""

__version__ = "1.0.0"
