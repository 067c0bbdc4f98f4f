"""Answer evaluation services: matchers, semantic evaluator and orchestration."""
