"""
Domain layer - Review model, rules and review services.

This layer contains:
- Domain models (issues, review results, team standards, git scope)
- Rule contract, built-in rules and the rule registry
- Domain services (language detection, orchestration, team standards)
- Domain exceptions

This layer must NOT depend on infrastructure or adapters.
"""
