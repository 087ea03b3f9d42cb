"""
CRD Extractor - Export the CRDs of a Kubernetes cluster as JSON Schema.

This tool provides:
- Discovery of every CustomResourceDefinition registered in a cluster
- Bounded-parallel retrieval of the CRD documents
- Conversion to standalone JSON Schema via kubeconform's openapi2jsonschema
- An on-disk layout usable by datree, kubeconform and kubeval
"""

__version__ = "0.1.0"
