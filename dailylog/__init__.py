"""
Daily Log: a private, local-first incident journal.

Packages:
- lib: exceptions, logging, cryptography
- config: environment configuration and fixed vocabularies
- models: storage table, record dataclasses, request schemas
- services: object store, settings, auth gate, silent tracker, incidents, reports
- infra: encrypted backup export/import
- core: the DailyLog application facade
"""

__version__ = "1.0.0"
