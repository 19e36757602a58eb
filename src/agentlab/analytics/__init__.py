"""Analytics module for dashboard statistics.

- Pure functions over a snapshot of experiments
- Forbidden: database access, caching, mutation of the input
"""
