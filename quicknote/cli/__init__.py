"""
CLI Client Package.

Typer + Rich front end that encrypts, shares and opens notes via the HTTP API.
"""
