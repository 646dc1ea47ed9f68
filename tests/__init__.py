"""
Unit Tests for Chess Play

Running Tests:
    # Run all tests
    pytest tests/

    # Run specific test file
    pytest tests/test_accumulator.py

    # Run with coverage
    pytest tests/ --cov=chess_play --cov-report=html

Most session tests use a fake engine script (see conftest.py); tests that
need a real Stockfish binary are skipped when it is not installed.

Dependencies:
    - pytest: Test framework
    - pytest-cov: Coverage reporting
"""
