"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- qiniu: Qiniu Kodo object storage (SDK signing, requests transport)

These wrappers translate between vendor formats and the core storage types.
"""
