"""Arena module for pairwise output battles.

- Computes Elo updates and records battle history
- Selects and shuffles battle contenders
- Forbidden: dashboard aggregation, UI shaping
"""
