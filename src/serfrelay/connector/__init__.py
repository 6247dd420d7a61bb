"""
The connector reaches out to an endpoint and, on success, owns the conduit to it.
A socket connector also owns the candidate addresses the endpoint resolved to.
"""
