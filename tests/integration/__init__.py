"""
Integration tests.

These talk to a real Redis server and only run when USE_REAL_REDIS=1.
"""
