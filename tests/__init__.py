"""
Tests for Quantum Pong
======================

Run all tests:
    pytest tests/

Run with coverage:
    pytest tests/ --cov=quantum_pong --cov-report=html
"""
