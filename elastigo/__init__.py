"""A small Elasticsearch client: documents, search, indices, cluster, node and cat APIs."""

__version__ = "0.0.2"