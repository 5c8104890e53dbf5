"""
Timecard Kernel

Shared foundation for the holiday and overtime categorization engine:
- Structured JSON logging
- Typed exceptions with machine-readable codes
- Injectable clock
- Pure domain values (entries, categories, totals, holidays, regions)
"""

__version__ = "0.1.0"
