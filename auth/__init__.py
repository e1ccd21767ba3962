"""auth/ -- Identity core: password hashing, credential store, tokens, orchestration.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/ or core/. The application wires settings into
auth/ objects at startup; auth/ never reads configuration itself.
"""
