"""
formlogic — conditional visibility and schema validation for questionnaires.

This package is the rule engine behind a form builder:

    - Schema validation (can this form be saved?)
    - Visibility evaluation (which fields are answerable right now,
      and which stale answers must be discarded?)

ARCHITECTURAL GUARANTEE:
------------------------
The engine itself contains ZERO knowledge of:
    - HTML rendering or form layout
    - Authentication
    - Persistence strategy
    - Analytics aggregation

Rendering, storage and charting consume this model unchanged.
"""

__version__ = "0.1.0"
