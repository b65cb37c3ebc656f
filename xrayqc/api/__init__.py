"""
API orchestration boundary for the X-ray QC service.

Design intent:
- Expose thin, typed endpoints for evaluation, session history and settings.
- Keep request validation explicit and failure modes predictable.
- Orchestrate modules without embedding QC rules in routers.
"""
