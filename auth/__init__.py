"""auth/ -- Authentication core for the SSO service.

Password hashing, per-app token issuance, the storage contract and the
AuthService that combines them. SqlStore is the SQLAlchemy implementation
of the storage contract.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/ or core/.
api/ and main.py import from auth/, not the other way around.
"""
