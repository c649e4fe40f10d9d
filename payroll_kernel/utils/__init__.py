"""Utility modules for the payroll kernel."""

from payroll_kernel.utils.hashing import canonicalize_json, hash_payload
from payroll_kernel.utils.locks import KeyedLocks

__all__ = [
    "canonicalize_json",
    "hash_payload",
    "KeyedLocks",
]
