"""
Domain layer - entities, errors and result types.

Framework-agnostic business objects shared by repositories and services.
"""
