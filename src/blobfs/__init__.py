"""blobfs: a filesystem-shaped HTTP interface over flat object storage."""

__version__ = "0.1.0"
