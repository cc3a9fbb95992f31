"""
Test suites package.

Kept importable so shared helpers (e.g. `testsuites.unit.fakes`) can be
imported by test modules and IDEs alike.
"""
