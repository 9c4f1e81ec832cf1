"""
Access Request Workflow Module

This module provides the consent-based disclosure workflow:
- Access request creation, listing and owner decisions
- Ledger-gated approval (sync, then validate, then commit)
- Ledger re-validation before releasing approved documents
"""

__version__ = "1.0.0"
