"""
crl_server — a small Certificate Revocation List server.

Serves a signed CRL over HTTP, regenerating it lazily once an hour from an
operator-maintained revocation list and a single CA key pair. The CA
credentials and the list are re-read on every regeneration, so both can be
rotated without a restart; each CRL is also written to disk so a restarted
process can resume serving immediately.

Built on the Railway-Oriented Programming (ROP) primitives in
`crl_server.railway` for explicit error handling.
"""

__version__ = "0.1.0"
