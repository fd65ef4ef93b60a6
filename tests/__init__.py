"""
Test suite for the inventory scanner.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_scan_service.py -v
"""
