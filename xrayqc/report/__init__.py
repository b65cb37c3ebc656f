"""
Report rendering boundary for the X-ray QC service.

Design intent:
- Turn stored sessions into human-readable, fixed-precision text.
- Never feed rounded display values back into stored results.
"""
