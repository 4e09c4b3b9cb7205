"""Find and remove unused media attachments and attachments with missing files.

The package scans the attachment records of a WordPress-style database,
decides for each one whether it is still referenced, caches the outcome as a
JSON snapshot and deletes the leftovers after confirmation. Every decision is
written to a CSV audit log.
"""

__version__ = "1.0.3"
