"""Test package for Persona Chat.

Structure:
    - unit/: Individual function and class tests
    - integration/: API endpoints and end-to-end chat flows

Uses in-memory stores and scripted providers; live-model tests are skipped
without an API key. Leverages pytest with pytest-check for soft assertions.
"""
