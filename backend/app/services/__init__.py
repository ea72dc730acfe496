"""Services Layer — user, onboarding and webhook use cases.

Invariants:
    - Services depend on core/repository_protocols, never on concrete SQL classes
    - Services own the transaction: repositories add and query, services commit
"""
