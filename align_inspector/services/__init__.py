from .inspector import Inspector, create_inspector, INSPECTOR_KINDS

__all__ = ["Inspector", "create_inspector", "INSPECTOR_KINDS"]
