"""
AdventureWorks Sales & Inventory Analytics

Eight read-only analytical reports over a bicycle manufacturer's
sales/inventory snapshot, expressed as pure polars transformations.
"""

__version__ = "0.1.0"
