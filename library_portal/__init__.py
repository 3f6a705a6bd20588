# Package initializer for the library portal booking backend.

"""
The `library_portal` package contains the study-room booking backend of the
university library portal.

Modules:

- ``config``: application settings loaded from environment variables.
- ``models``: Pydantic data models for rooms, reservations, slots, books and loans.
- ``catalog``: book catalog and scientific database search.
- ``availability``: the daily slot grid and room filters.
- ``selection``: per-room slot selection and consecutiveness rules.
- ``booking``: reservation submission and cancellation.
- ``data_client``: helpers for talking to the hosted data service.
- ``main``: the FastAPI application definition.

"""
