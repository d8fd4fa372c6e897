"""
Test suite for photojournal.

This module contains all test cases for the application:
- Unit tests for utilities, models and services
- Integration tests for the HTTP API
"""
