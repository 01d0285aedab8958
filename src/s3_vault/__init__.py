"""s3-vault: resilient S3-compatible backup transfers with bring-your-own-key credentials."""

__version__ = "0.1.0"
