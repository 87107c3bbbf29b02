"""
Core storage abstractions for the chunk store.

This module is framework-agnostic - it doesn't import the Qiniu SDK,
requests, or any configuration machinery. Backends live under
``infrastructure`` and satisfy the contract defined here.
"""
