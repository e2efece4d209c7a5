"""Route modules mounted by :func:`deepsearch_crawler.api.main.create_app`."""
