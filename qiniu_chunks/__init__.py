"""
Qiniu chunk storage - persist chunk store objects in Qiniu Kodo buckets.

This package contains:
- core: The generic object storage contract, result types and errors
- infrastructure: The Qiniu backend and an in-memory mock
- config: Settings and logging setup
"""

__version__ = "0.1.0"
