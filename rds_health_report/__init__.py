"""RDS health report Lambda: probe a MySQL database, render a PDF, store it in S3."""

__version__ = "0.1.0"
