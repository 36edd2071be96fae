"""auth/ -- Student accounts, password hashing, JWT sessions and the bearer guard.

Layer rule: auth/ may import from core/ (config, errors) and third-party
libraries. It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
