from . import articles, auth, bulk, clusters, generation, keys, tools, wordpress

__all__ = ["articles", "auth", "bulk", "clusters", "generation", "keys", "tools", "wordpress"]
