"""Service layer for business logic.

Services encapsulate all business logic, keeping routes thin and focused
on HTTP handling. This separation provides:
- Clear business rules in one place (streaks, tip fallback, subscriptions)
- Orchestration of multiple repositories
- Reusable logic shared by routes, the frame handler and the CLI

Layer hierarchy:
    Routes (HTTP) -> Services (Business Logic) -> Repositories (Key-value store)

Services should:
- Contain all business rules and validation
- Orchestrate calls to repositories
- Return models or result schemas, raising domain errors for routes to map

Services should NOT:
- Build store keys or (de)serialize records (use repositories)
- Know about HTTP request/response details
"""
