"""Core (UI-agnostic) review analytics logic.

This package contains:
- record admission (decoded spreadsheet rows -> ReviewRecord)
- date / fiscal-period resolution
- cascading filters, aggregation, trend analysis, sort and pagination
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
