"""
clinicslots - Aggregate appointment availability across clinic booking systems.
"""

__version__ = "0.1.0"
