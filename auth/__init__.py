"""auth/ -- Credential hashing, token issuing, and the auth use cases.

Layer rule: auth/ imports stdlib, third-party libraries, core/logger and
storage/errors only. It does NOT import from api/ or storage/store.
api/ imports from auth/, not the other way around.
"""
