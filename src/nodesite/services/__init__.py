"""Service layer — source, ingest, and build pipelines returning ServiceResult."""
