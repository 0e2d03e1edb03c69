"""
Equipment app for the Chemical Equipment Parameter Visualizer.

This app contains:
- the CSV ingestion pipeline (column mapping, row clean-up, statistics),
- database models for profiles, uploads and equipment rows,
- API views for previewing, confirming and reporting on uploads.
"""
