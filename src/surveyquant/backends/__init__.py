"""Backends for run output (CSV sheets)."""

from .csv_writer import SheetKind, save_sheets, write_sheet

__all__ = ["SheetKind", "save_sheets", "write_sheet"]
