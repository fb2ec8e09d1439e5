"""
Test Suite for Parcel Tracker

Test Structure:
- fixtures/: Saved page HTML and shared helpers
- unit/: Unit tests mirroring src/ package structure
- integration/: CLI and end-to-end capture workflow tests

Test Categories:
- Core utilities (currency, dates, JSON persistence, serialized writes)
- Record store, matching, reconciliation and lookup
- Page extraction
- Command-line interface

Test Data:
All orders, tracking numbers and pages are synthetic.
"""
