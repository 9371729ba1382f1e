"""initbox — install developer tools from YAML formulas."""

__version__ = "1.0.0"
