"""
Routers module - API endpoint handlers organized by feature.

Each router handles a specific domain of the API:
- auth: Operator login
- users: Operator accounts, roles and activity
- prospects: CRM leads and follow-ups
- finance: Transactions, invoices, budgets and reports
- calendar_auth: Google OAuth connection
- calendar: Google Calendar sync and the Event Store
- webhook: Inbound leads from external forms
"""
