# Routes package init
"""
FinEase Backend — API Routes Package
======================================

Route Inventory:
    - health.py:        GET /                      (greeting, no auth)
                        GET /health                (store + identity status, no auth)
    - transactions.py:  GET    /my-transaction     (list own records)
                        GET    /my-transaction/{id}
                        POST   /my-transaction
                        PUT    /my-transaction/{id}
                        DELETE /my-transaction/{id}

Routes stay thin: they take a RequestContext and call TransactionService.
Errors propagate to the global handlers registered in main.py.
"""
