"""
Module 08 - Read-only Claim API (FastAPI)

HTTP API over a generated distribution:
- GET /health - Health check
- GET /distribution - Root, total and size
- GET /claims/{address} - Claim with proof
- POST /verify/proof - Check an explicit proof
- POST /verify/claim - Check a stored claim

Usage:
    MERKLEDROP_DISTRIBUTION=distribution.json uvicorn api.app:app
"""

__version__ = "0.1.0"
