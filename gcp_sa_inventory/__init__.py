"""
GCP Service Account Inventory
Inventory service accounts across GCP projects and search the results offline
"""

__version__ = "1.0.0"
