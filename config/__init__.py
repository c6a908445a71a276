"""Deployment settings for InfoCard that live outside the application code."""
