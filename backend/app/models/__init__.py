from .sheet_row import SheetRow


__all__ = ["SheetRow"]
