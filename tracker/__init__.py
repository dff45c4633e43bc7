"""Core (UI-agnostic) project tracking logic.

This package contains:
- ingestion (CSV/XLSX -> header/row strings)
- header matching and row normalization per module
- module aggregators (JSON-serializable dashboard specs)
- filters, rule-based query answers, report export
- chart helpers (Altair -> Vega-Lite spec dict)
"""
