"""
x509tojson — X.509 certificate batches to JSON.

Reads certificates from concatenated PEM files or from CSV files carrying
base64 DER in one column, decodes them with cryptography, and writes one
JSON document per certificate to stdout or POSTs it to a search index.

Errors travel on the Railway-Oriented Programming (ROP) framework:
per-record decode failures are logged and skipped, structural input and
transport failures end the run.
"""

__version__ = "0.1.0"
