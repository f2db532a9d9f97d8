"""
Services layer - business logic goes here, NOT in routes.

Pure rule modules (status_workflow, issue_lifecycle, budget_ledger,
citizen_ledger) compute the fields to change. The *_service modules read
Firestore, call into those rules and persist the result.
"""
