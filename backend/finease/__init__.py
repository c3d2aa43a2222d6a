"""
FinEase Backend — Application Package Initializer
==================================================

What: Marks the `finease` directory as a Python package.
Why:  Enables module imports like `from finease.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The backend is a thin layered REST service over two managed services
    (Firebase Authentication and MongoDB Atlas):

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Dependencies (Request Context)    │  ← Verified identity + collection
    ├─────────────────────────────────────┤
    │     Services (Ownership-scoped CRUD)│  ← Transaction rules
    ├─────────────────────────────────────┤
    │    Database (Record Store Gateway)  │  ← Cached async MongoDB client
    └─────────────────────────────────────┘

    Routes never talk to MongoDB or Firebase directly; they receive a
    RequestContext and delegate to TransactionService.
"""

__version__ = "1.0.0"
