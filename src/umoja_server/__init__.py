"""umoja_server — FastAPI REST API for the UMOJA assessment SDK.

Exposes account sync, dashboards, guardian linking, the assessment
catalog, session recording, progress and the LLM profile analysis as a
stateless HTTP API behind a trusted identity gateway.
"""
