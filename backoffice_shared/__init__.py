"""Pydantic schemas shared between the back-office server and its dashboard client."""
