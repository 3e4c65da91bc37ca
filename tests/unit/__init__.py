"""Unit tests for isolated modules: config, models, storage, uploads, stream consumer."""
