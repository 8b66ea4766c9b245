"""Service layer: application services, DTOs and ports."""
