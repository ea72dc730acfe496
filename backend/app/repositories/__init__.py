"""Repositories — async SQLAlchemy implementations of core/repository_protocols.py.

Invariants:
    - Repositories add and query; they never flush or commit (services own the transaction)
    - One repository per aggregate, exposing only the queries services need
"""
