"""
Pydantic schemas for engine inputs, outputs and HTTP payloads.
"""
