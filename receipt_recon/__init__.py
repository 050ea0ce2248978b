# receipt_recon/__init__.py

"""Reconciles saved and freshly fetched warehouse receipts into one canonical file."""
