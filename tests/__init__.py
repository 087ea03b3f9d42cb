"""
Tests package - Test suite for the CRD extractor.

Contains:
- unit/: Unit tests for individual components, with the cluster and the
  converter process faked
"""
