"""menugate: role-based access control and navigation for multi-tenant business apps."""

__version__ = "0.1.0"
