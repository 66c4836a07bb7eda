# app/models/__init__.py
# Central import registry so Base.metadata knows every table

from app.models.snapshot import TradeSnapshot  # noqa: F401
