"""
Pydantic schemas for API request/response validation.

Payloads are camelCase on the wire and wrapped in the ``ApiResponse``
envelope.
"""
