"""Audit logging package."""

from ledgerbook.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
