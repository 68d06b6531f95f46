"""UCoA Compliance: periodic audit of government transaction uploads.

Validates uploaded transaction batches against the Uniform Chart of Accounts
and the posting date window policy, and aggregates the violations per batch
and per entity into report tables.
"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
