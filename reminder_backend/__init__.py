"""
Backend package for the family reminder app.

This package provides a FastAPI application that stores child-care
reminders and a thoughts journal in a Google Sheets spreadsheet, with an
in-memory spreadsheet for tests and local runs.
"""
