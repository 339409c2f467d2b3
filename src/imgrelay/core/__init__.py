"""
Core modules for imgrelay.

This package contains the provider abstraction and dispatch layer:
- Provider registry (static provider/model catalogue)
- Availability resolution (enable flags, credential presence)
- Request dispatch and provider adapters
- Provider health probe
"""
