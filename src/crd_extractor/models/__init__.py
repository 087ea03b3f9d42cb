"""Data models for the CRD extraction pipeline."""

from .schema import ConversionResult, ConvertedSchemaFile, FetchResult, OrganizedLayout

__all__ = ["ConversionResult", "ConvertedSchemaFile", "FetchResult", "OrganizedLayout"]
