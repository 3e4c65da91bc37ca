"""Test package for MistralHub.

Structure:
    - unit/: Individual function and class tests
    - integration/: API endpoints driven through the ASGI app

The model API is replaced by a scripted fake of the SDK client, so no test
needs network access or an API key. Uses pytest with pytest-check for soft
assertions.
"""
