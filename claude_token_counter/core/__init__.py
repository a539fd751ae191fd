"""
Core modules for Claude Token Counter.

This package contains the record model, the cost model and the
refresh loop that drives repeated scans.
"""
