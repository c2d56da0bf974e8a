"""
Sekolah - back-office website SMPIT Baituljannah
"""

__version__ = "1.0.0"
