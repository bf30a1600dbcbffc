"""Pi-hole Admin Toolkit: menu-driven maintenance console for a Pi-hole host."""

__version__ = "0.3.0"
