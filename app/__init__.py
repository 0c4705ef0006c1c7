"""
Healthcare Wellness API

A FastAPI service for patient wellness tracking: appointments, health
records, preventive care, dashboards, reminders and search, all filtered
through a single role-based access policy.
"""

__version__ = "1.0.0"
