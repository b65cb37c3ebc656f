"""
X-ray QC service package.

Design intent:
- Keep the QC evaluation engine (qc) pure and independent of storage and transport.
- Host intake, storage, reporting and API layers as thin collaborators around it.
"""
