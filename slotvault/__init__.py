"""slotvault - credential vault for shared service-panel logins."""

__version__ = "0.1.0"
