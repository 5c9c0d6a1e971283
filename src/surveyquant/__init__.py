"""
Survey Quantification Package

Turns qualitative survey answers (ordinal-scale text, time brackets,
multi-select checkboxes) into quantitative variables for statistical tools.

ARCHITECTURAL GUARANTEE:
------------------------
The core (model, registry, filters, engine, summarizer) contains ZERO
knowledge of:
    - File formats (CSV, spreadsheets)
    - User interfaces
    - Statistical modelling

It defines conversion configuration and per-record transformation only.

File input and output happen in external layers (csv_source, backends).
Registries are plain values; several can coexist in one process.
"""

__version__ = "0.1.0"
