from .groups import main


__all__ = ['main']
