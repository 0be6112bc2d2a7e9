"""
Core Components Package

Shared building blocks used by the project apps:
- serializers: base serializer, mixins and the dynamic serializer factory
- logging: structured logging and correlation middleware
- error_handling: standard error envelope and DRF exception handler
"""
