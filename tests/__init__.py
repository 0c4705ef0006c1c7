"""
Test suite for the Healthcare Wellness API.

Covers the access policy, the entity routes, dashboards, reminders and search.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
