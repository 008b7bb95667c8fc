from .processor import ProcessedMdx, compute_checksum, process_mdx_for_search

__all__ = ["ProcessedMdx", "compute_checksum", "process_mdx_for_search"]
