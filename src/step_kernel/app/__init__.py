from .cli import run

__all__ = ["run"]
