"""
Songs catalog: schemas, persistence and HTTP endpoints.
"""
