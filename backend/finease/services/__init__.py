# Services package init
"""
FinEase Backend — Services Layer
==================================

Service Inventory:
    - IdentityVerifier (abstract): bearer token → VerifiedIdentity
    - FirebaseIdentityVerifier: Firebase Admin SDK implementation
    - TransactionService: ownership-scoped CRUD over the transactions collection

Services never see HTTP objects; routes hand them a collection handle and
the verified caller.
"""
