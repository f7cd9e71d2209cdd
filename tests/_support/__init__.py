"""
Test support utilities for norm tests.

Doubles for the capability and database protocols live in ``fakes``.
"""
