"""kubereports: periodic export of Trivy report custom resources to S3 and/or disk."""

__version__ = "0.3.0"
