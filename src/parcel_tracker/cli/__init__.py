"""
Command Line Interface Package

Command Structure:
- parcels: Main entry point with utility commands (version, config)
- parcels capture: Extract a saved page and reconcile its facts
- parcels lookup / match-page: Find records by tracking number
- parcels list / stats / manual / delete / clear / export: Manage records
"""
