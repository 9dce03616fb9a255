"""
KPiece Test Suite
=================

Test Organization
-----------------
- tests/unit/          : Fast unit tests (no network, temp dirs only)
- tests/unit/domain/   : Domain model tests (pure, no mocks)

Testing Philosophy
------------------
- Unit tests: Fast, isolated, test economy rules
- Randomness is seeded and time is injected
- Use pytest markers to categorize and selectively run tests
- Follow AAA pattern: Arrange, Act, Assert
"""
