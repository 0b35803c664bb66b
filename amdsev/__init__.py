"""Data structures and byte layouts for AMD SEV and SEV-SNP management."""

__version__ = "0.1.0"

__all__ = ["platform", "host_types", "snp_types", "cert_table", "guest_types"]