"""
Core Module Package.

This package contains the infrastructure components
that all other modules depend on.

Components:
- clock: Unified time abstraction
- config: Environment-driven settings
- exceptions: Service exception hierarchy
- logging: Process-wide logging setup
"""
