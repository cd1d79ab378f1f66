"""Core domain: models, rating, budgets, configuration and ports."""
