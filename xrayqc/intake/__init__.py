"""
Data-entry boundary for the X-ray QC service.

Design intent:
- Validate and type raw form values before they reach the evaluator.
- Keep form defaults (nominal kV/mAs, linearity stations) in one place.
"""
