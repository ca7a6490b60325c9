"""Application layer: record and collection services and the composition root."""
