"""Core (UI-agnostic) consultant capacity logic.

This package contains:
- CSV ingestion (HubSpot deals export -> project rows)
- workload derivation (rows -> consultants with 12-month timelines)
- filter normalization and application
- exports (CSV / spreadsheet / JSON) and chart helpers (Altair -> Vega-Lite spec dict)
"""
